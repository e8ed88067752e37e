from dataclasses import dataclass


@dataclass(slots=True)
class BaseView:
    """Base class for view response objects."""
    pass
