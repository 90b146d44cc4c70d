from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from calcflow.api import create_app
from calcflow.domain.entities import EntityKind
from calcflow.domain.relations import CALCULATION_FORMULARS, FORMULAR_NODES
from calcflow.ordering.engine import OrderedList
from calcflow.stores.base import Storage
from calcflow.stores.database import Database
from tests.fakes import FakeStorage


@pytest.fixture
def sqlite_database(tmp_path: Path) -> Generator[Database, None, None]:
    """File-backed SQLite database with all tables created."""
    database = Database(f"sqlite:///{tmp_path / 'calcflow.db'}")
    database.create_tables()
    yield database
    database.close()


@pytest.fixture(params=["fake", "sqlite"])
def storage(request: pytest.FixtureRequest, tmp_path: Path) -> Generator[Storage, None, None]:
    """Every storage implementation, so ordering behaviour is checked against each."""
    if request.param == "fake":
        yield FakeStorage()
        return
    database = Database(f"sqlite:///{tmp_path / 'calcflow.db'}")
    database.create_tables()
    yield database
    database.close()


@pytest.fixture
def make_entity(storage: Storage) -> Callable[..., str]:
    """Create an entity and return its ID."""

    def _make_entity(kind: EntityKind, name: str, **fields) -> str:
        if kind == "node":
            fields.setdefault("node_data", f"data of {name}")
        with storage.transaction() as session:
            return session.entities(kind).create(name=name, **fields).id

    return _make_entity


@pytest.fixture
def calculation_formulars(storage: Storage) -> OrderedList:
    return OrderedList(storage, CALCULATION_FORMULARS)


@pytest.fixture
def formular_nodes(storage: Storage) -> OrderedList:
    return OrderedList(storage, FORMULAR_NODES)


@pytest.fixture
def calculation_xyz(
    make_entity: Callable[..., str], calculation_formulars: OrderedList
) -> tuple[str, dict[str, str]]:
    """A calculation with formulars x, y and z attached in that order."""
    calculation_id = make_entity("calculation", "calc")
    formulars = {name: make_entity("formular", name) for name in ("x", "y", "z")}
    for formular_id in formulars.values():
        calculation_formulars.attach(calculation_id, formular_id)
    return calculation_id, formulars


@pytest.fixture
def test_client(storage: Storage) -> TestClient:
    """Create test client backed by the parametrized storage."""
    return TestClient(create_app(storage=storage))
