"""
StateSpace Utils
================

Storage structures backing the space tree.

Classes:
- SpaceArena: Index-addressed node storage with free list and generations
"""

from .arena import ROOT_PARENT, SpaceArena

__all__ = [
    "SpaceArena",
    "ROOT_PARENT",
]
