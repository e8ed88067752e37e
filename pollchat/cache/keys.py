from urllib.parse import quote


def _part(identity: str) -> str:
    # ":" never survives quoting, so joined parts cannot run into each other.
    return quote(identity, safe="")


class RedisKeys:
    """Key patterns for the chat store."""

    # Key prefixes
    USER_PREFIX = "user:"
    CHATS_PREFIX = "chats:"
    MESSAGES_PREFIX = "messages:"
    SEQUENCE_PREFIX = "msgseq:"
    LAST_SEEN_PREFIX = "lastseen:"
    TYPING_PREFIX = "typing:"

    SEPARATOR = ":"

    @staticmethod
    def user(user_id: str) -> str:
        """Key for a user's presence record."""
        return f"{RedisKeys.USER_PREFIX}{_part(user_id)}"

    @staticmethod
    def chats(user_id: str) -> str:
        """Key for the set of a user's chat partners."""
        return f"{RedisKeys.CHATS_PREFIX}{_part(user_id)}"

    @staticmethod
    def pair(user_a: str, user_b: str) -> str:
        """Order-independent id of the conversation between two users."""
        first, second = sorted((user_a, user_b))
        return f"{_part(first)}{RedisKeys.SEPARATOR}{_part(second)}"

    @staticmethod
    def messages(pair_key: str) -> str:
        """Key for a pair's message log."""
        return f"{RedisKeys.MESSAGES_PREFIX}{pair_key}"

    @staticmethod
    def message_sequence(pair_key: str) -> str:
        """Key for the last message id handed out in a pair."""
        return f"{RedisKeys.SEQUENCE_PREFIX}{pair_key}"

    @staticmethod
    def typing(pair_key: str) -> str:
        """Key for a pair's typing map."""
        return f"{RedisKeys.TYPING_PREFIX}{pair_key}"

    @staticmethod
    def last_seen(reader_id: str, partner_id: str) -> str:
        """Key for the reader's read marker on a partner. Directional."""
        return f"{RedisKeys.LAST_SEEN_PREFIX}{_part(reader_id)}{RedisKeys.SEPARATOR}{_part(partner_id)}"
