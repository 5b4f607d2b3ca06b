"""
StateSpace Types
================

Shared type aliases and the composite child key.
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Hashable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Union,
)

if TYPE_CHECKING:
    from .space import ActionContext

# JSON-like values a space can hold
StateValue = Union[
    None, str, int, float, bool, Dict[str, "StateValue"], List["StateValue"]
]

ActionFn = Callable[["ActionContext", Any], Optional[Mapping[str, Any]]]
Subscriber = Callable[[StateValue], Any]


class ChildKey(NamedTuple):
    """
    Registry key of a child space.

    ``id`` is ``None`` for a child bound directly at ``state[name]`` and holds
    the element id for a child bound inside the list at ``state[name]``.
    """

    name: str
    id: Optional[Hashable] = None

    @property
    def is_list(self) -> bool:
        return self.id is not None

    def __str__(self) -> str:
        if self.id is None:
            return self.name
        return f"{self.name}[{self.id!r}]"


class ChildMap(dict):
    """
    Snapshot of a space's children by ``ChildKey``.

    A plain field name looks up the scalar child bound at that name, so
    ``children["todo"]`` and ``children[ChildKey("todo")]`` are the same.
    """

    @staticmethod
    def _normalize(key: Any) -> Any:
        return ChildKey(key) if isinstance(key, str) else key

    def __getitem__(self, key: Any) -> Any:
        return super().__getitem__(self._normalize(key))

    def __contains__(self, key: object) -> bool:
        return super().__contains__(self._normalize(key))

    def get(self, key: Any, default: Any = None) -> Any:
        return super().get(self._normalize(key), default)
