#!/usr/bin/env python3
"""
StateSpace TODO List Example
============================

A todo list kept in one root space. Every todo item is a list child space
bound by its id, so the code that toggles or edits an item only ever sees
that item's state, while the root always holds the whole list.

To run:
```bash
$ pip install -e . && python examples/todo_list.py
```
"""

import logging
import uuid

from statespace import Space
from statespace.render import print_tree

# ==============================================================================================
# Configuration and Constants
# ==============================================================================================

LOG_LEVEL = logging.INFO

FILTER_MODE_ALL = "all"
FILTER_MODE_ACTIVE = "active"
FILTER_MODE_COMPLETED = "completed"

logging.basicConfig(level=LOG_LEVEL)


# ==============================================================================================
# Actions
# ==============================================================================================


def add_todo(ctx, text):
    """Append a new todo item as a child space."""
    item = ctx.sub_space({"id": uuid.uuid4().hex[:8], "text": text, "done": False})
    return {"todos": ctx.state["todos"] + [item]}


def set_filter(ctx, mode):
    return {"filter_mode": mode}


def clear_completed(ctx, event):
    return {"todos": [todo for todo in ctx.state["todos"] if not todo["done"]]}


def toggle(ctx, event):
    return {"done": not ctx.state["done"]}


def rename(ctx, text):
    return {"text": text}


def delete(ctx, event):
    return None


def visible_todos(state):
    mode = state["filter_mode"]
    if mode == FILTER_MODE_ACTIVE:
        return [todo for todo in state["todos"] if not todo["done"]]
    if mode == FILTER_MODE_COMPLETED:
        return [todo for todo in state["todos"] if todo["done"]]
    return list(state["todos"])


def main():
    app = Space({"title": "Groceries", "filter_mode": FILTER_MODE_ALL, "todos": []})

    @app.subscribe
    def log_changes(state):
        done = sum(1 for todo in state["todos"] if todo["done"])
        logging.info(f"{len(state['todos'])} todos, {done} done")

    add = app.do_action(add_todo)
    for text in ("milk", "eggs", "bread"):
        add(text)

    milk, eggs, bread = (app.sub_space("todos", todo["id"]) for todo in app.state["todos"])
    milk.do_action(toggle)()
    eggs.do_action(rename)("free-range eggs")
    bread.do_action(delete)()

    app.do_action(set_filter)(FILTER_MODE_ACTIVE)
    logging.info(f"Active: {[todo['text'] for todo in visible_todos(app.state)]}")

    print_tree(app)

    app.do_action(clear_completed)()
    logging.info(f"After clearing: {[todo['text'] for todo in app.state['todos']]}")


if __name__ == "__main__":
    main()
