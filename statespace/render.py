"""
StateSpace Render - Terminal View of a Space Tree
=================================================

Draws the registered child spaces of a tree with rich, one branch per child
space, labelled with its key, subscriber count and a short state summary.

```python
from statespace import Space
from statespace.render import print_tree

space = Space({"title": "Groceries", "items": []})
space.sub_space("items", "milk")
print_tree(space)
```
"""

from typing import Mapping, Optional

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from .space import Space
from .types import StateValue

SUMMARY_WIDTH = 60


def summarize_state(state: StateValue, width: int = SUMMARY_WIDTH) -> str:
    """One-line summary of a state value: scalar fields in full, containers by size."""
    if isinstance(state, Mapping):
        parts = []
        for name, value in state.items():
            if isinstance(value, Mapping):
                parts.append(f"{name}={{{len(value)}}}")
            elif isinstance(value, (list, tuple)):
                parts.append(f"{name}=[{len(value)}]")
            else:
                parts.append(f"{name}={value!r}")
        summary = "{" + ", ".join(parts) + "}"
    else:
        summary = repr(state)

    if len(summary) > width:
        summary = summary[: width - 1] + "…"
    return summary


def _label(name: str, space: Space) -> Text:
    label = Text(name, style="bold cyan")
    count = len(space.subscribers)
    if count:
        label.append(f" ({count} subscriber{'s' if count != 1 else ''})", style="magenta")
    label.append(" ")
    label.append(summarize_state(space.state), style="dim")
    return label


def _add_children(branch: Tree, space: Space) -> None:
    children = space.children
    for key in sorted(children, key=lambda k: (k.name, str(k.id))):
        child = children[key]
        _add_children(branch.add(_label(str(key), child)), child)


def render_tree(space: Space, name: str = "root") -> Tree:
    """Build a rich ``Tree`` of ``space`` and all of its registered children."""
    if space.detached:
        return Tree(Text(f"{name} <detached>", style="red"))
    tree = Tree(_label(name, space))
    _add_children(tree, space)
    return tree


def print_tree(space: Space, console: Optional[Console] = None) -> None:
    """Print the space tree to ``console`` (stdout by default)."""
    (console or Console()).print(render_tree(space))
