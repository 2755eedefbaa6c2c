"""
Unit tests for OrderingStore: seeding from display_order, pruning,
reconciliation, corrupt values and missing storage.

Run with: python -m pytest tests/test_ordering_store.py -v
"""
from __future__ import annotations

import json

from gantt.constants import (
    CATEGORY_ORDER_KEY,
    EXPANDED_CATEGORIES_KEY,
    EXPANDED_SUBCATEGORIES_KEY,
    SUBCATEGORY_ORDER_KEY,
    TASK_ORDER_KEY,
)
from gantt.domain.ordering.store import OrderingStore
from gantt.domain.tasks.models import Task
from gantt.infra.storage.memory import MemoryStorage


def _task(task_id, category="Dev", sub_category="BE", display_order=0):
    return Task(id=task_id, name=task_id.upper(), category=category, sub_category=sub_category, display_order=display_order)


class BrokenStorage:
    def get(self, key):
        raise OSError("disk gone")

    def set(self, key, value):
        raise OSError("disk gone")


class UndecodableStorage:
    def get(self, key):
        return b"\xff".decode("utf-8")

    def set(self, key, value):
        pass


# ----- initialization -----


def test_initialize_seeds_bucket_from_display_order():
    """Two Dev/BE tasks with display_order 0, 1 and nothing stored -> bucket ["a", "b"]."""
    store = OrderingStore(MemoryStorage())
    tasks = [_task("a", display_order=0), _task("b", display_order=1)]

    state = store.initialize_if_absent(tasks)

    assert store.load_task_order() == {"Dev::BE": ["a", "b"]}
    assert state.tasks == {"Dev::BE": ["a", "b"]}
    assert store.load_category_order() == ["Dev"]
    assert store.load_subcategory_order() == {"Dev": ["BE"]}


def test_initialize_sorts_bucket_by_display_order_not_input_order():
    store = OrderingStore(MemoryStorage())
    store.initialize_task_order([_task("b", display_order=5), _task("a", display_order=1)])
    assert store.load_task_order() == {"Dev::BE": ["a", "b"]}


def test_initialize_orders_categories_by_first_seen_display_order():
    store = OrderingStore(MemoryStorage())
    tasks = [
        _task("o1", category="Ops", sub_category="Infra", display_order=5),
        _task("d1", category="Dev", sub_category="FE", display_order=1),
        _task("d2", category="Dev", sub_category="BE", display_order=0),
    ]
    store.initialize_if_absent(tasks)

    assert store.load_category_order() == ["Dev", "Ops"]
    # FE was seen first for Dev with order 1, BE with order 0
    assert store.load_subcategory_order() == {"Dev": ["BE", "FE"], "Ops": ["Infra"]}


def test_initialize_is_idempotent_and_keeps_user_order():
    store = OrderingStore(MemoryStorage())
    tasks = [_task("a", display_order=0), _task("b", display_order=1)]
    store.initialize_if_absent(tasks)
    store.set_task_bucket("Dev::BE", ["b", "a"])

    store.initialize_if_absent(tasks)

    assert store.load_task_order() == {"Dev::BE": ["b", "a"]}


def test_initialize_with_no_tasks_writes_nothing():
    storage = MemoryStorage()
    store = OrderingStore(storage)
    store.initialize_if_absent([])
    assert storage.data == {}


# ----- pruning / reconciliation -----


def test_prune_missing_drops_deleted_ids():
    store = OrderingStore(MemoryStorage())
    store.save_task_order({"Dev::BE": ["a", "b", "c"], "Dev::FE": ["d"]})

    changed = store.prune_missing(["a", "c"])

    assert changed is True
    assert store.load_task_order() == {"Dev::BE": ["a", "c"], "Dev::FE": []}
    assert store.prune_missing(["a", "c"]) is False


def test_reconcile_places_every_task_in_exactly_its_own_bucket():
    store = OrderingStore(MemoryStorage())
    store.save_task_order({"Dev::BE": ["a", "x", "a"], "Dev::FE": ["b"]})
    tasks = [
        _task("a", sub_category="BE"),
        _task("b", sub_category="BE"),  # moved from FE to BE
        _task("c", sub_category="FE"),  # new
    ]

    assert store.reconcile(tasks) is True
    assert store.load_task_order() == {"Dev::BE": ["a", "b"], "Dev::FE": ["c"]}
    assert store.reconcile(tasks) is False


def test_reconcile_adds_new_groups_and_drops_empty_ones():
    store = OrderingStore(MemoryStorage())
    store.save_category_order(["Ops", "Dev"])
    store.save_subcategory_order({"Ops": ["Infra"], "Dev": ["FE", "BE"]})
    store.save_task_order({"Ops::Infra": ["o"], "Dev::FE": ["f"], "Dev::BE": ["a"]})
    store.save_expanded_categories(["Ops", "QA"])
    store.save_expanded_subcategories(["Ops::Infra", "Dev::BE"])
    tasks = [
        _task("a", sub_category="BE"),
        _task("q", category="QA", sub_category="Auto"),
        _task("m", sub_category="Mobile"),
    ]

    assert store.reconcile(tasks) is True
    assert store.load_category_order() == ["Dev", "QA"]
    assert store.load_subcategory_order() == {"Dev": ["BE", "Mobile"], "QA": ["Auto"]}
    assert store.load_task_order() == {"Dev::BE": ["a"], "QA::Auto": ["q"], "Dev::Mobile": ["m"]}
    assert store.load_expanded_categories() == {"QA"}
    assert store.load_expanded_subcategories() == {"Dev::BE"}
    assert store.reconcile(tasks) is False


def test_append_if_missing_goes_to_end_once():
    store = OrderingStore(MemoryStorage())
    store.save_task_order({"Dev::BE": ["a"]})

    assert store.append_if_missing("Dev::BE", "b") is True
    assert store.append_if_missing("Dev::BE", "b") is False
    assert store.load_task_order() == {"Dev::BE": ["a", "b"]}


def test_append_category_and_subcategory_if_missing():
    store = OrderingStore(MemoryStorage())
    store.save_category_order(["Dev"])

    assert store.append_category_if_missing("Ops") is True
    assert store.append_category_if_missing("Dev") is False
    assert store.append_subcategory_if_missing("Ops", "Infra") is True
    assert store.append_subcategory_if_missing("Ops", "Infra") is False

    assert store.load_category_order() == ["Dev", "Ops"]
    assert store.load_subcategory_order() == {"Ops": ["Infra"]}


def test_remove_task():
    store = OrderingStore(MemoryStorage())
    store.save_task_order({"Dev::BE": ["a", "b"]})
    assert store.remove_task("a") is True
    assert store.remove_task("a") is False
    assert store.load_task_order() == {"Dev::BE": ["b"]}


# ----- expand / collapse -----


def test_toggle_category_flips_and_persists():
    storage = MemoryStorage()
    store = OrderingStore(storage)

    assert store.toggle_category("Dev") is True
    assert store.expansion_state().is_category_expanded("Dev")
    assert store.toggle_category("Dev") is False
    assert not store.expansion_state().is_category_expanded("Dev")
    assert json.loads(storage.data[EXPANDED_CATEGORIES_KEY]) == []


def test_expanded_sets_are_stored_sorted():
    storage = MemoryStorage()
    store = OrderingStore(storage)
    store.toggle_subcategory("Ops::Infra")
    store.toggle_subcategory("Dev::BE")
    assert json.loads(storage.data[EXPANDED_SUBCATEGORIES_KEY]) == ["Dev::BE", "Ops::Infra"]


# ----- corrupt values / missing storage -----


def test_unparsable_value_reads_as_empty():
    store = OrderingStore(MemoryStorage({TASK_ORDER_KEY: "{not json"}))
    assert store.load_task_order() == {}


def test_wrong_shape_reads_as_empty():
    store = OrderingStore(
        MemoryStorage(
            {
                CATEGORY_ORDER_KEY: json.dumps({"Dev": 1}),
                SUBCATEGORY_ORDER_KEY: json.dumps(["Dev"]),
            }
        )
    )
    assert store.load_category_order() == []
    assert store.load_subcategory_order() == {}


def test_non_string_entries_are_dropped():
    store = OrderingStore(
        MemoryStorage(
            {
                CATEGORY_ORDER_KEY: json.dumps(["Dev", 3, None, "Ops"]),
                TASK_ORDER_KEY: json.dumps({"Dev::BE": ["a", 1], "Dev::FE": "oops"}),
            }
        )
    )
    assert store.load_category_order() == ["Dev", "Ops"]
    assert store.load_task_order() == {"Dev::BE": ["a"]}


def test_corrupt_value_is_replaced_by_initialization():
    storage = MemoryStorage({TASK_ORDER_KEY: "garbage"})
    store = OrderingStore(storage)
    store.initialize_task_order([_task("a")])
    assert json.loads(storage.data[TASK_ORDER_KEY]) == {"Dev::BE": ["a"]}


def test_store_without_storage_is_empty_and_never_raises():
    store = OrderingStore(None)

    assert store.available is False
    assert store.initialize_if_absent([_task("a")]).tasks == {"Dev::BE": ["a"]}
    assert store.load_task_order() == {}
    assert store.toggle_category("Dev") is True
    assert store.expansion_state().categories == frozenset()


def test_failing_storage_reads_empty_and_swallows_writes():
    store = OrderingStore(BrokenStorage())

    assert store.available is True
    assert store.load_category_order() == []
    store.save_category_order(["Dev"])
    store.set_task_bucket("Dev::BE", ["a"])
    assert store.load_task_order() == {}


def test_undecodable_value_reads_as_empty():
    store = OrderingStore(UndecodableStorage())
    assert store.load_task_order() == {}
    assert store.load_expanded_categories() == set()


def test_snapshot_payload_has_all_five_keys():
    store = OrderingStore(MemoryStorage())
    store.initialize_if_absent([_task("a"), _task("b", display_order=1)])
    store.toggle_category("Dev")

    payload = store.snapshot().to_payload()

    assert payload == {
        "categories": ["Dev"],
        "subcategories": {"Dev": ["BE"]},
        "tasks": {"Dev::BE": ["a", "b"]},
        "expandedCategories": ["Dev"],
        "expandedSubcategories": [],
    }
