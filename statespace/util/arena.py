"""
StateSpace Arena - Index-Addressed Node Storage
===============================================

This module provides the arena that backs every space tree. Nodes live in
parallel per-node lists addressed by stable integer ids, and parent links are
stored as ids rather than object references, so the tree holds no reference
cycles while upward traversal stays O(1) per level.

Key Features:
- Parallel lists for state, parent link, child key, child registry, subscribers
- Free list for id reuse
- Generation counters so handles to released nodes can detect it
- Weakly cached handles: one handle object per live node while anyone holds it
- One re-entrant lock per tree
"""

import threading
import weakref
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..types import ChildKey, StateValue, Subscriber

ROOT_PARENT = -1


class SpaceArena:
    """
    Arena of space nodes for a single tree.

    A node is identified by its index. Released nodes go to the free list and
    their generation is bumped, which invalidates every handle minted for the
    previous occupant.
    """

    def __init__(self, max_nodes: Optional[int] = None):
        """
        Initialize an empty arena.

        Args:
            max_nodes: Maximum number of live nodes (None for unbounded)
        """
        self.capacity = max_nodes
        self.count = 0
        self.live = 0

        # Per-node metadata (parallel lists)
        self.states: List[StateValue] = []
        self.parents: List[int] = []
        self.child_keys: List[Optional[ChildKey]] = []
        self.children: List[Dict[ChildKey, int]] = []
        self.subscribers: List[List[Subscriber]] = []
        self.generations: List[int] = []

        # Free list for reuse
        self.free_list: List[int] = []

        # node id -> handle, dropped as soon as the caller lets go of it
        self.handles: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

        self.lock = threading.RLock()

    def __len__(self) -> int:
        return self.live

    def allocate(
        self,
        state: StateValue = None,
        parent: int = ROOT_PARENT,
        child_key: Optional[ChildKey] = None,
    ) -> int:
        """
        Allocate a node and return its id.

        When ``parent`` is given the node is also registered in the parent's
        child registry under ``child_key``.

        Raises:
            RuntimeError: If the arena is exhausted
        """
        if self.capacity is not None and self.live >= self.capacity:
            raise RuntimeError("Space arena exhausted")

        if self.free_list:
            node_id = self.free_list.pop()
            self.states[node_id] = state
            self.parents[node_id] = parent
            self.child_keys[node_id] = child_key
            self.children[node_id] = {}
            self.subscribers[node_id] = []
        else:
            node_id = self.count
            self.count += 1
            self.states.append(state)
            self.parents.append(parent)
            self.child_keys.append(child_key)
            self.children.append({})
            self.subscribers.append([])
            self.generations.append(0)

        self.live += 1
        if parent != ROOT_PARENT:
            self.children[parent][child_key] = node_id
        return node_id

    def release(self, node_id: int) -> int:
        """
        Release a node and its whole subtree. Returns the number of nodes freed.

        The node is detached from its parent's registry first.
        """
        parent = self.parents[node_id]
        if parent != ROOT_PARENT:
            registry = self.children[parent]
            key = self.child_keys[node_id]
            if registry.get(key) == node_id:
                del registry[key]

        freed = 0
        for descendant in list(self.walk(node_id)):
            self.states[descendant] = None
            self.parents[descendant] = ROOT_PARENT
            self.child_keys[descendant] = None
            self.children[descendant] = {}
            self.subscribers[descendant] = []
            self.generations[descendant] += 1
            self.handles.pop(descendant, None)
            self.free_list.append(descendant)
            freed += 1

        self.live -= freed
        return freed

    def is_live(self, node_id: int, generation: int) -> bool:
        """Check that ``node_id`` still holds the node a handle was minted for."""
        return node_id < self.count and self.generations[node_id] == generation

    def walk(self, node_id: int) -> Iterator[int]:
        """Yield ``node_id`` and every descendant, parents before children."""
        stack = [node_id]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(list(self.children[current].values())))

    def subtree_size(self, node_id: int) -> int:
        return sum(1 for _ in self.walk(node_id))

    def available(self) -> Optional[int]:
        """Number of nodes that can still be allocated (None when unbounded)."""
        if self.capacity is None:
            return None
        return self.capacity - self.live

    def ancestors(self, node_id: int) -> Iterator[int]:
        """Yield the ancestors of ``node_id`` from its parent up to the root."""
        parent = self.parents[node_id]
        while parent != ROOT_PARENT:
            yield parent
            parent = self.parents[parent]

    def path(self, node_id: int) -> List[ChildKey]:
        """Child keys leading from the root down to ``node_id``."""
        keys = []
        current = node_id
        while self.parents[current] != ROOT_PARENT:
            keys.append(self.child_keys[current])
            current = self.parents[current]
        keys.reverse()
        return keys

    # Subscriber operations
    def add_subscriber(self, node_id: int, subscriber: Callable) -> None:
        """Add a subscriber for a node (duplicates allowed)."""
        self.subscribers[node_id].append(subscriber)

    def remove_subscriber(self, node_id: int, subscriber: Callable) -> None:
        """Remove the first registration of a subscriber, if any."""
        if subscriber in self.subscribers[node_id]:
            self.subscribers[node_id].remove(subscriber)

    def notify_subscribers(self, node_id: int, generation: Optional[int] = None) -> None:
        """
        Call every subscriber of a node in registration order with its state.

        The state is read before each call. Notification stops once the node
        is released, or if it was already released when ``generation`` was
        taken.
        """
        if generation is None:
            generation = self.generations[node_id]
        # Copy to allow (un)subscribing from inside a callback
        for subscriber in self.subscribers[node_id][:]:
            if self.generations[node_id] != generation:
                return
            subscriber(self.states[node_id])
