"""
StateSpace Reconciliation Helpers
=================================

Pure functions that build new state values out of old ones. None of them
mutates its input: every change returns a fresh ``dict`` or ``list`` so that
consumers can detect changes by identity.

List elements are matched by their ``id`` field, never by position.
"""

from typing import Any, Hashable, List, Mapping, Optional

from .types import StateValue

ID_FIELD = "id"


def shallow_merge(state: StateValue, update: Mapping[str, Any]) -> dict:
    """
    Merge ``update`` onto ``state`` one level deep.

    Keys of ``update`` win, keys it does not mention are kept. A state that is
    not a mapping (e.g. ``None`` after a removal) counts as empty.
    """
    merged = dict(state) if isinstance(state, Mapping) else {}
    merged.update(update)
    return merged


def element_id(element: Any) -> Optional[Hashable]:
    """Return the ``id`` of a list element, or None if it has none."""
    if isinstance(element, Mapping):
        return element.get(ID_FIELD)
    return None


def index_by_id(items: Any, id: Hashable) -> int:
    """Position of the element with ``id`` in ``items``, -1 if absent."""
    if not isinstance(items, (list, tuple)):
        return -1
    for index, element in enumerate(items):
        if element_id(element) == id:
            return index
    return -1


def find_by_id(items: Any, id: Hashable) -> StateValue:
    """The element with ``id`` in ``items``, or None."""
    index = index_by_id(items, id)
    return items[index] if index >= 0 else None


def replace_by_id(items: Any, id: Hashable, element: StateValue) -> List[StateValue]:
    """
    New list with the element carrying ``id`` swapped for ``element``.

    The element is appended when no sibling carries ``id`` yet.
    """
    updated = list(items) if isinstance(items, (list, tuple)) else []
    index = index_by_id(updated, id)
    if index >= 0:
        updated[index] = element
    else:
        updated.append(element)
    return updated


def remove_by_id(items: Any, id: Hashable) -> List[StateValue]:
    """New list without the element carrying ``id``; order is preserved."""
    if not isinstance(items, (list, tuple)):
        return []
    return [element for element in items if element_id(element) != id]


def branch_value(state: StateValue, name: str) -> StateValue:
    """``state[name]`` for mapping states, None otherwise."""
    if isinstance(state, Mapping):
        return state.get(name)
    return None
