"""
StateSpace Configuration
========================

Per-tree settings. A root space takes a ``SpaceConfig``; every child shares
the configuration of its root.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SpaceConfig:
    """Space tree configuration parameters."""

    # Fire subscribers of every ancestor an update propagates through
    notify_ancestors: bool = True
    # Fire subscribers of children rewritten by a parent's action
    notify_descendants: bool = True
    # Upper bound on live nodes in the tree (None = unbounded)
    max_nodes: Optional[int] = None


DEFAULT_CONFIG = SpaceConfig()
