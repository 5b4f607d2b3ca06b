"""
Shared pytest fixtures and configuration for StateSpace tests.
"""

import pytest

from statespace import Space


@pytest.fixture
def space():
    """Provide a fresh root space with a scalar child branch."""
    return Space({"initialState": "here", "count": 1, "child": {}})


@pytest.fixture
def child_spaces(space):
    """
    Register one child by name and one by action.

    Returns (child looked up by name, handle of the child declared by action).
    """
    by_name = space.sub_space("child")
    declared = {}

    def add_action_child(ctx, event):
        declared["handle"] = ctx.sub_space({"value": "present"})
        return {"actionChild": declared["handle"]}

    space.do_action(add_action_child)()
    return by_name, declared["handle"]


@pytest.fixture
def list_space(space, child_spaces):
    """The root space with one list child declared under 'list'."""
    space.do_action(
        lambda ctx, event: {"list": [ctx.sub_space({"value": "present", "id": "abc12-3"})]}
    )()
    return space


@pytest.fixture
def todo_space():
    """A root space holding three todo items as list children."""
    space = Space({"title": "Groceries", "todos": []})
    space.do_action(
        lambda ctx, event: {
            "todos": [
                ctx.sub_space({"id": "a", "text": "milk", "done": False}),
                ctx.sub_space({"id": "b", "text": "eggs", "done": False}),
                ctx.sub_space({"id": "c", "text": "bread", "done": False}),
            ]
        }
    )()
    return space
