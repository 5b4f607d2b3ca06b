"""Unit tests for the pure reconciliation helpers."""

import pytest

from statespace.reconcile import (
    branch_value,
    element_id,
    find_by_id,
    index_by_id,
    remove_by_id,
    replace_by_id,
    shallow_merge,
)


@pytest.mark.unit
@pytest.mark.reconcile
def test_shallow_merge_overrides_and_preserves_keys():
    state = {"a": 1, "b": {"nested": True}}

    merged = shallow_merge(state, {"a": 2, "c": 3})

    assert merged == {"a": 2, "b": {"nested": True}, "c": 3}
    assert merged is not state
    assert merged["b"] is state["b"]
    assert state == {"a": 1, "b": {"nested": True}}


@pytest.mark.unit
@pytest.mark.reconcile
@pytest.mark.parametrize("state", [None, "scalar", 3, ["a"]])
def test_shallow_merge_treats_non_mappings_as_empty(state):
    assert shallow_merge(state, {"a": 1}) == {"a": 1}


@pytest.mark.unit
@pytest.mark.reconcile
def test_element_id_only_reads_mappings():
    assert element_id({"id": "x"}) == "x"
    assert element_id({"value": 1}) is None
    assert element_id("x") is None


@pytest.mark.unit
@pytest.mark.reconcile
def test_lookup_by_id():
    items = [{"id": 1, "v": "a"}, {"id": 2, "v": "b"}]

    assert index_by_id(items, 2) == 1
    assert find_by_id(items, 2) is items[1]
    assert index_by_id(items, 3) == -1
    assert find_by_id(items, 3) is None
    assert find_by_id(None, 1) is None
    assert index_by_id({"id": 1}, 1) == -1


@pytest.mark.unit
@pytest.mark.reconcile
def test_replace_by_id_swaps_matching_element():
    items = [{"id": 1}, {"id": 2}, {"id": 3}]

    updated = replace_by_id(items, 2, {"id": 2, "done": True})

    assert updated == [{"id": 1}, {"id": 2, "done": True}, {"id": 3}]
    assert updated is not items
    assert items[1] == {"id": 2}


@pytest.mark.unit
@pytest.mark.reconcile
def test_replace_by_id_appends_unknown_element():
    assert replace_by_id([{"id": 1}], 2, {"id": 2}) == [{"id": 1}, {"id": 2}]
    assert replace_by_id(None, 2, {"id": 2}) == [{"id": 2}]


@pytest.mark.unit
@pytest.mark.reconcile
def test_remove_by_id_keeps_order_of_the_rest():
    items = [{"id": "a"}, {"id": "b"}, {"id": "c"}]

    assert remove_by_id(items, "b") == [{"id": "a"}, {"id": "c"}]
    assert remove_by_id(items, "missing") == items
    assert remove_by_id(None, "a") == []
    assert len(items) == 3


@pytest.mark.unit
@pytest.mark.reconcile
def test_branch_value():
    assert branch_value({"a": 1}, "a") == 1
    assert branch_value({"a": 1}, "b") is None
    assert branch_value(None, "a") is None
