"""
StateSpace - Hierarchical Immutable State Spaces

A single-source-of-truth state container whose sub-trees can be addressed,
acted on and observed independently while always reconciling into one root.
"""

from .config import DEFAULT_CONFIG, SpaceConfig
from .errors import (
    DetachedSpaceError,
    DuplicateListIdError,
    MissingListIdError,
    SpaceError,
)
from .space import ActionContext, ChildHandle, Space
from .types import ChildKey, ChildMap, StateValue

__version__ = "0.1.0"

__all__ = [
    # Core
    "Space",
    "ActionContext",
    "ChildHandle",
    "ChildKey",
    "StateValue",
    # Configuration
    "SpaceConfig",
    "DEFAULT_CONFIG",
    # Exceptions
    "SpaceError",
    "MissingListIdError",
    "DuplicateListIdError",
    "DetachedSpaceError",
]
