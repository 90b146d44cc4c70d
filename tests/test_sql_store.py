"""Tests for the SQL association store and the Database transaction boundary."""

import threading

import pytest
from sqlalchemy.exc import IntegrityError

from calcflow.domain.associations import Association
from calcflow.domain.relations import CALCULATION_FORMULARS, FORMULAR_NODES
from calcflow.errors import InvalidReferenceError, NotFoundError
from calcflow.ordering.engine import OrderedList
from calcflow.ordering.reader import order_chain
from calcflow.stores.database import Database
from tests.helpers import child_order, snapshot


def _seed_chain(database: Database, size: int = 3) -> tuple[str, list[str]]:
    """Create a formular with `size` nodes attached, return its ID and the node IDs."""
    formular_nodes = OrderedList(database, FORMULAR_NODES)
    with database.transaction() as session:
        formular_id = session.entities("formular").create(name="f").id
        node_ids = [
            session.entities("node").create(name=f"n{i}", node_data="").id for i in range(size)
        ]
    for node_id in node_ids:
        formular_nodes.attach(formular_id, node_id)
    return formular_id, node_ids


def _fields(record: Association) -> tuple:
    return record.id, record.parent_id, record.child_id, record.next_id


def test_create_returns_unlinked_record(sqlite_database: Database) -> None:
    with sqlite_database.transaction() as session:
        calculation_id = session.entities("calculation").create(name="c").id
        formular_id = session.entities("formular").create(name="f").id
        record = session.associations(CALCULATION_FORMULARS).create(calculation_id, formular_id)

    assert record.next_id is None
    with sqlite_database.transaction() as session:
        store = session.associations(CALCULATION_FORMULARS)
        assert _fields(store.find_by_id(record.id)) == _fields(record)
        found = store.find_by_parent_and_child(calculation_id, formular_id)
        assert _fields(found) == _fields(record)
        assert [_fields(r) for r in store.list_by_parent(calculation_id)] == [_fields(record)]
        assert [_fields(r) for r in store.list_by_child(formular_id)] == [_fields(record)]


def test_set_next_validates_target(sqlite_database: Database) -> None:
    formular_id, _ = _seed_chain(sqlite_database)
    other_formular_id, _ = _seed_chain(sqlite_database)

    with sqlite_database.transaction() as session:
        store = session.associations(FORMULAR_NODES)
        mine = store.list_by_parent(formular_id)[0]
        theirs = store.list_by_parent(other_formular_id)[0]

        with pytest.raises(NotFoundError):
            store.set_next("missing", None)
        with pytest.raises(InvalidReferenceError):
            store.set_next(mine.id, theirs.id)
        with pytest.raises(InvalidReferenceError):
            store.set_next(mine.id, "missing")
        with pytest.raises(InvalidReferenceError):
            store.set_next(mine.id, mine.id)


def test_delete_is_idempotent(sqlite_database: Database) -> None:
    formular_id, _ = _seed_chain(sqlite_database, size=1)

    with sqlite_database.transaction() as session:
        store = session.associations(FORMULAR_NODES)
        record = store.list_by_parent(formular_id)[0]
        store.delete(record.id)
        store.delete(record.id)
        assert store.find_by_id(record.id) is None


def test_shared_successor_is_refused_by_database(sqlite_database: Database) -> None:
    formular_id, _ = _seed_chain(sqlite_database)

    with pytest.raises(IntegrityError):
        with sqlite_database.transaction() as session:
            store = session.associations(FORMULAR_NODES)
            head, middle, tail = order_chain(store.list_by_parent(formular_id))
            store.set_next(tail.id, middle.id)


def test_failed_transaction_rolls_back_everything(sqlite_database: Database) -> None:
    formular_id, node_ids = _seed_chain(sqlite_database)
    before = snapshot(sqlite_database, FORMULAR_NODES, formular_id)

    with pytest.raises(RuntimeError):
        with sqlite_database.transaction() as session:
            store = session.associations(FORMULAR_NODES)
            for record in store.list_by_parent(formular_id):
                store.set_next(record.id, None)
            raise RuntimeError("interrupted halfway")

    assert snapshot(sqlite_database, FORMULAR_NODES, formular_id) == before
    assert child_order(OrderedList(sqlite_database, FORMULAR_NODES), formular_id) == node_ids


def test_concurrent_reorders_on_distinct_parents(sqlite_database: Database) -> None:
    formular_nodes = OrderedList(sqlite_database, FORMULAR_NODES)
    chains = [_seed_chain(sqlite_database, size=5) for _ in range(2)]
    errors: list[Exception] = []

    def reorder_repeatedly(formular_id: str, node_ids: list[str]) -> None:
        try:
            order = node_ids[:]
            for _ in range(20):
                order = order[1:] + order[:1]
                formular_nodes.reorder(formular_id, order)
        except Exception as e:  # noqa: BLE001
            errors.append(e)

    threads = [
        threading.Thread(target=reorder_repeatedly, args=(formular_id, node_ids))
        for formular_id, node_ids in chains
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    for formular_id, node_ids in chains:
        # 20 rotations of 5 elements bring every chain back to its start
        assert child_order(formular_nodes, formular_id) == node_ids


def test_reset_tables_drops_data(sqlite_database: Database) -> None:
    formular_id, _ = _seed_chain(sqlite_database)

    sqlite_database.reset_tables()

    with sqlite_database.transaction() as session:
        assert session.entities("formular").get(formular_id) is None
        assert session.associations(FORMULAR_NODES).list_by_parent(formular_id) == []
