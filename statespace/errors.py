"""
StateSpace Errors
=================

Exceptions raised by the space tree. Only misuse is an error here: unknown
keys, absent branches and repeated removals resolve to ``None`` instead.
"""


class SpaceError(Exception):
    """Base class for all space errors."""

    pass


class MissingListIdError(SpaceError, ValueError):
    """Raised when a child declared inside a list has no ``id`` field."""

    def __init__(self, name: str, index: int):
        self.name = name
        self.index = index
        super().__init__(
            f"Child space at '{name}[{index}]' is missing an 'id' field; "
            "list children need a unique id among their siblings"
        )


class DuplicateListIdError(SpaceError, ValueError):
    """Raised when two elements of one list share the same ``id``."""

    def __init__(self, name: str, id):
        self.name = name
        self.id = id
        super().__init__(f"Duplicate id {id!r} in list '{name}'")


class DetachedSpaceError(SpaceError, RuntimeError):
    """Raised when a released space is asked for a child."""

    pass
