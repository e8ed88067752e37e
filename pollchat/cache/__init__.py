from .keys import RedisKeys
from .presence import PresenceCacheService
from .relationships import RelationshipCacheService
from .messages import MessageLogCacheService
from .read_markers import ReadMarkerCacheService, count_unread
from .typing_indicators import TypingCacheService

__all__ = [
    "RedisKeys",
    "PresenceCacheService",
    "RelationshipCacheService",
    "MessageLogCacheService",
    "ReadMarkerCacheService",
    "TypingCacheService",
    "count_unread",
]
