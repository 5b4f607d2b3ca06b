"""
StateSpace Space - Hierarchical Immutable State Container
=========================================================

This module provides ``Space``, a node in a tree of immutable state slices.
A single root holds the whole application state; child spaces address parts
of it, run their own actions, and always reconcile back into the root.

Why Use Spaces?
---------------

Interactive applications want one source of truth, but the code that edits a
todo item should not need to know where the todo list lives. A child space
gives that code its own ``state`` and its own actions, while every change is
written back up the tree so the root state stays coherent.

Core Components
---------------

**Space**: A node of the tree. Exposes ``state``, ``do_action`` and
``sub_space``; subscription and child inspection sit next to them.

**ActionContext**: What an action receives. Holds the current ``state`` and a
``sub_space`` factory for declaring new children in the returned update.

**ChildHandle**: A child declared by an action. It is registered only after
the action returns, so an action that raises leaves the tree untouched.

Basic Usage
-----------

```python
from statespace import Space

space = Space({"count": 1, "child": {}})

increment = space.do_action(lambda ctx, event: {"count": ctx.state["count"] + 1})
increment()
print(space.state["count"])  # 2

child = space.sub_space("child")
child.do_action(lambda ctx, event: {"value": "X"})()
print(space.state["child"])  # {'value': 'X'}
```

Children in Lists
-----------------

```python
space.do_action(
    lambda ctx, event: {"todos": [ctx.sub_space({"id": "a1", "done": False})]}
)()

item = space.sub_space("todos", "a1")
item.do_action(lambda ctx, event: {"done": True})()
print(space.state["todos"])  # [{'id': 'a1', 'done': True}]

item.do_action(lambda ctx, event: None)()  # removes the element
print(space.state["todos"])  # []
```

Actions return a mapping that is merged one level deep onto the current
state, or ``None`` to remove their space from its parent.
"""

import logging
from functools import wraps
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Tuple

from .config import DEFAULT_CONFIG, SpaceConfig
from .errors import DetachedSpaceError, DuplicateListIdError, MissingListIdError
from .reconcile import (
    ID_FIELD,
    branch_value,
    element_id,
    find_by_id,
    remove_by_id,
    replace_by_id,
    shallow_merge,
)
from .types import ActionFn, ChildKey, ChildMap, StateValue, Subscriber
from .util.arena import ROOT_PARENT, SpaceArena

PUBLIC_ATTRIBUTES = ["do_action", "state", "sub_space"]


class ChildHandle:
    """A child space declared inside an action, pending registration."""

    __slots__ = ("initial_state", "space")

    def __init__(self, initial_state: StateValue):
        self.initial_state = initial_state
        # Set once the declaring action has been applied
        self.space: Optional["Space"] = None

    def __repr__(self) -> str:
        return f"ChildHandle({self.initial_state!r})"


class ActionContext:
    """
    Argument passed to every action.

    Attributes:
        state: The current state of the space the action is bound to.
    """

    __slots__ = ("state",)

    def __init__(self, state: StateValue):
        self.state = state

    def sub_space(self, initial_state: StateValue = None) -> ChildHandle:
        """
        Declare a child space.

        Place the returned handle as the value of a key in the action's result
        (or as an element of a list value) to bind the child at that key. List
        children must carry an ``id`` field.
        """
        if initial_state is None:
            initial_state = {}
        elif isinstance(initial_state, Mapping):
            initial_state = dict(initial_state)
        return ChildHandle(initial_state)

    declare_child = sub_space


class _Transaction:
    """
    State changes staged by one action.

    Nothing touches the arena until ``commit``. Staging raises on bad input
    (missing or duplicate list ids) before any node has been changed.
    """

    def __init__(self, arena: SpaceArena):
        self.arena = arena
        self.states: Dict[int, StateValue] = {}
        self.registrations: List[Tuple[int, ChildKey, ChildHandle]] = []
        self.releases: List[int] = []
        self.origin: Optional[int] = None
        self.ancestors: List[int] = []
        self.rewritten: List[int] = []

    def state_of(self, node_id: int) -> StateValue:
        if node_id in self.states:
            return self.states[node_id]
        return self.arena.states[node_id]

    def stage(self, node_id: int, state: StateValue) -> None:
        self.states[node_id] = state

    def release(self, node_id: int) -> None:
        if node_id not in self.releases:
            self.releases.append(node_id)

    def update(self, node_id: int, result: Mapping[str, Any]) -> None:
        """Stage the merge of an action result onto ``node_id``."""
        staged = {
            name: self._stage_value(node_id, name, value)
            for name, value in result.items()
        }
        new_state = shallow_merge(self.arena.states[node_id], staged)

        key = self.arena.child_keys[node_id]
        if key is not None and key.is_list:
            # A list child keeps the id it is registered under
            new_state[ID_FIELD] = key.id

        self.stage(node_id, new_state)
        for name in staged:
            self._sync_branch(node_id, name, new_state.get(name))

        self.origin = node_id
        self._propagate_up(node_id)

    def remove(self, node_id: int) -> None:
        """Stage the removal of ``node_id`` from its parent's state."""
        arena = self.arena
        parent = arena.parents[node_id]
        if parent == ROOT_PARENT:
            logging.debug("Action returned None on the root space, clearing its state")
            self.stage(node_id, None)
            self._sync_down(node_id, None)
            self.origin = node_id
            return

        key = arena.child_keys[node_id]
        parent_state = self.state_of(parent)
        if key.is_list:
            branch = remove_by_id(branch_value(parent_state, key.name), key.id)
        else:
            branch = None

        self.release(node_id)
        self.stage(parent, shallow_merge(parent_state, {key.name: branch}))
        self._sync_branch(parent, key.name, branch, skip=node_id)
        self.origin = parent
        self._propagate_up(parent)

    def _stage_value(self, node_id: int, name: str, value: Any) -> Any:
        if isinstance(value, ChildHandle):
            self.registrations.append((node_id, ChildKey(name), value))
            return value.initial_state

        if not isinstance(value, (list, tuple)) or not any(
            isinstance(element, ChildHandle) for element in value
        ):
            return value

        elements = []
        seen = set()
        for index, element in enumerate(value):
            if isinstance(element, ChildHandle):
                id = element_id(element.initial_state)
                if id is None:
                    raise MissingListIdError(name, index)
                self.registrations.append((node_id, ChildKey(name, id), element))
                element = element.initial_state

            id = element_id(element)
            if id is not None:
                if id in seen:
                    raise DuplicateListIdError(name, id)
                seen.add(id)
            elements.append(element)
        return elements

    def _sync_branch(
        self, node_id: int, name: str, value: StateValue, skip: Optional[int] = None
    ) -> None:
        """
        Bring the children registered under ``name`` in line with ``value``.

        ``skip`` names the child the new value came from, which is already
        up to date.
        """
        declared = {
            key for parent, key, _ in self.registrations if parent == node_id
        }
        for key, child_id in list(self.arena.children[node_id].items()):
            if key.name != name or child_id == skip:
                continue
            if key in declared:
                # Replaced by a freshly declared child
                self.release(child_id)
                continue

            child_value = find_by_id(value, key.id) if key.is_list else value
            if child_value is None:
                self.release(child_id)
            elif child_value is not self.state_of(child_id):
                self.stage(child_id, child_value)
                self.rewritten.append(child_id)
                self._sync_down(child_id, child_value)

    def _sync_down(self, node_id: int, state: StateValue) -> None:
        names = {key.name for key in self.arena.children[node_id]}
        for name in names:
            self._sync_branch(node_id, name, branch_value(state, name))

    def _propagate_up(self, node_id: int) -> None:
        arena = self.arena
        child = node_id
        while arena.parents[child] != ROOT_PARENT:
            parent = arena.parents[child]
            key = arena.child_keys[child]
            parent_state = self.state_of(parent)
            child_state = self.state_of(child)
            if key.is_list:
                branch = replace_by_id(
                    branch_value(parent_state, key.name), key.id, child_state
                )
            else:
                branch = child_state
            self.stage(parent, shallow_merge(parent_state, {key.name: branch}))
            # A scalar child and list children may share the field
            self._sync_branch(parent, key.name, branch, skip=child)
            self.ancestors.append(parent)
            child = parent

    def commit(self, config: SpaceConfig) -> List[int]:
        """
        Apply every staged change to the arena.

        Returns the ids of the nodes to notify, in notification order.

        Raises:
            RuntimeError: If the declared children do not fit in the arena
        """
        arena = self.arena
        released = set()
        for node_id in self.releases:
            released.update(arena.walk(node_id))

        available = arena.available()
        if available is not None and len(self.registrations) > available + len(
            released
        ):
            raise RuntimeError("Space arena exhausted")

        for node_id, state in self.states.items():
            if node_id not in released:
                arena.states[node_id] = state

        freed = set()
        for node_id in self.releases:
            if node_id in freed:
                continue
            freed.update(arena.walk(node_id))
            logging.debug(f"Releasing space {_format_path(arena, node_id)}")
            arena.release(node_id)

        for parent, key, handle in self.registrations:
            child_id = arena.allocate(handle.initial_state, parent, key)
            handle.space = Space._for_node(arena, config, child_id)
            logging.debug(f"Registered child space {_format_path(arena, child_id)}")

        order = [self.origin]
        if config.notify_ancestors:
            order.extend(self.ancestors)
        if config.notify_descendants:
            order.extend(node for node in self.rewritten if node not in released)

        unique = []
        for node_id in order:
            if node_id not in unique:
                unique.append(node_id)
        return unique


def _format_path(arena: SpaceArena, node_id: int) -> str:
    return ".".join(["root"] + [str(key) for key in arena.path(node_id)])


class Space:
    """
    A node in a hierarchical, immutable state tree.

    The public contract is ``state``, ``do_action`` and ``sub_space``; only
    these are listed by ``dir()``. ``subscribe``, ``unsubscribe``,
    ``subscribers``, ``children`` and ``key`` are available for composition
    and inspection.

    A ``Space`` is a lightweight handle onto a node stored in the tree's
    arena. When the node is removed the handle becomes detached: its state
    reads as ``None`` and its actions do nothing.

    Example:
        ```python
        space = Space({"count": 0})

        @space.subscribe
        def on_change(state):
            print(f"count is now {state['count']}")

        space.do_action(lambda ctx, event: {"count": event})(5)
        # Prints: count is now 5
        ```
    """

    __slots__ = ("_arena", "_config", "_node_id", "_generation", "_key", "__weakref__")

    def __init__(
        self,
        initial_state: StateValue = None,
        config: Optional[SpaceConfig] = None,
    ):
        config = config or DEFAULT_CONFIG
        arena = SpaceArena(max_nodes=config.max_nodes)
        node_id = arena.allocate({} if initial_state is None else initial_state)
        self._bind(arena, config, node_id)
        arena.handles[node_id] = self

    def _bind(self, arena: SpaceArena, config: SpaceConfig, node_id: int) -> None:
        self._arena = arena
        self._config = config
        self._node_id = node_id
        self._generation = arena.generations[node_id]
        key = arena.child_keys[node_id]
        self._key = key.id if key is not None else None

    @classmethod
    def _for_node(cls, arena: SpaceArena, config: SpaceConfig, node_id: int) -> "Space":
        """Return the handle for a live node, reusing the cached one."""
        handle = arena.handles.get(node_id)
        if handle is None:
            handle = cls.__new__(cls)
            handle._bind(arena, config, node_id)
            arena.handles[node_id] = handle
        return handle

    def _is_live(self) -> bool:
        return self._arena.is_live(self._node_id, self._generation)

    def _require_live(self) -> None:
        if not self._is_live():
            raise DetachedSpaceError(
                f"Space {self._key!r} was removed from its tree"
                if self._key is not None
                else "Space was removed from its tree"
            )

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    @property
    def state(self) -> StateValue:
        """Current state snapshot. Never mutated; replaced on every change."""
        if not self._is_live():
            return None
        return self._arena.states[self._node_id]

    def do_action(self, action: ActionFn) -> Callable[..., None]:
        """
        Bind an action to this space.

        ``action(ctx, event)`` receives an :class:`ActionContext` and the
        event the bound action was called with. It returns a mapping to merge
        onto the state, or ``None`` to remove this space from its parent (the
        root's state becomes ``None``).

        Warning:
            An action that falls off the end without a ``return`` also
            returns ``None`` and removes its space. On the root this clears
            the whole state. Return ``{}`` to leave the state unchanged.

        Returns:
            A callable ``bound_action(event=None)`` that applies the action and
            returns None.
        """

        @wraps(action)
        def bound_action(event: Any = None) -> None:
            self._dispatch(action, event)

        return bound_action

    def sub_space(self, name: str, id: Optional[Hashable] = None) -> "Space":
        """
        Look up or create the child space at ``state[name]``.

        With ``id`` the child is the element of the list at ``state[name]``
        whose ``id`` field matches. Repeated lookups return the same object.

        Raises:
            DetachedSpaceError: If this space was removed from its tree
        """
        arena = self._arena
        with arena.lock:
            self._require_live()
            key = ChildKey(name, id)
            child_id = arena.children[self._node_id].get(key)
            if child_id is None:
                branch = branch_value(arena.states[self._node_id], name)
                if key.is_list:
                    branch = find_by_id(branch, id)
                child_id = arena.allocate(branch, self._node_id, key)
                logging.debug(
                    f"Registered child space {_format_path(arena, child_id)}"
                )
            return Space._for_node(arena, self._config, child_id)

    # ------------------------------------------------------------------
    # Subscriptions and inspection
    # ------------------------------------------------------------------

    def subscribe(self, func: Subscriber) -> Subscriber:
        """
        Call ``func(state)`` after every change of this space's state.

        Returns ``func`` so this can be used as a decorator.
        """
        with self._arena.lock:
            self._require_live()
            self._arena.add_subscriber(self._node_id, func)
        return func

    def unsubscribe(self, func: Subscriber) -> None:
        with self._arena.lock:
            if self._is_live():
                self._arena.remove_subscriber(self._node_id, func)

    @property
    def subscribers(self) -> Tuple[Subscriber, ...]:
        if not self._is_live():
            return ()
        return tuple(self._arena.subscribers[self._node_id])

    @property
    def children(self) -> ChildMap:
        """Registered child spaces by ``ChildKey``, or by field name for scalar children."""
        arena = self._arena
        with arena.lock:
            if not self._is_live():
                return ChildMap()
            return ChildMap(
                (key, Space._for_node(arena, self._config, child_id))
                for key, child_id in arena.children[self._node_id].items()
            )

    @property
    def key(self) -> Optional[Hashable]:
        """The list id of a list child, None for other spaces."""
        return self._key

    @property
    def detached(self) -> bool:
        return not self._is_live()

    @property
    def config(self) -> SpaceConfig:
        return self._config

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, action: ActionFn, event: Any) -> None:
        arena = self._arena
        with arena.lock:
            if not self._is_live():
                logging.debug(
                    f"Ignoring action {getattr(action, '__name__', action)!s} "
                    "on a detached space"
                )
                return

            result = action(ActionContext(arena.states[self._node_id]), event)

            transaction = _Transaction(arena)
            if result is None:
                transaction.remove(self._node_id)
            elif isinstance(result, Mapping):
                transaction.update(self._node_id, result)
            else:
                raise TypeError(
                    f"Action must return a mapping or None, got {type(result).__name__}"
                )

            targets = [
                (node_id, arena.generations[node_id])
                for node_id in transaction.commit(self._config)
            ]
            # Subscribers read the arena at call time, so a nested action
            # started by one of them is visible to the ones that follow
            for node_id, generation in targets:
                arena.notify_subscribers(node_id, generation)

    def __dir__(self) -> List[str]:
        return list(PUBLIC_ATTRIBUTES)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Space):
            return NotImplemented
        return (
            self._arena is other._arena
            and self._node_id == other._node_id
            and self._generation == other._generation
        )

    def __hash__(self) -> int:
        return hash((id(self._arena), self._node_id, self._generation))

    def __repr__(self) -> str:
        if not self._is_live():
            return "Space(<detached>)"
        return f"Space({_format_path(self._arena, self._node_id)}: {self.state!r})"
