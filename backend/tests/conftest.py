"""
Configuration partagée pour tous les tests.
Base SQLite en mémoire, pas d'initialisation des casiers au démarrage ;
get_db est remplacé par une session mockée et get_registry par un registre en mémoire.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_LOCKERS", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

from casiers.database import get_db  # noqa: E402
from casiers.main import app  # noqa: E402
from casiers.registry import LockerRegistry  # noqa: E402
from casiers.state import get_registry  # noqa: E402
from casiers.storage import MemorySnapshotStore  # noqa: E402


@pytest.fixture
def store():
    return MemorySnapshotStore()


@pytest.fixture
def registry(store):
    """Registre vide persistant dans un stockage en mémoire."""
    return LockerRegistry(store=store)


@pytest.fixture
def db_mock():
    return MagicMock()


@pytest.fixture
def client(db_mock, registry):
    """Client HTTP de test avec la BDD mockée et un registre en mémoire."""
    app.dependency_overrides[get_db] = lambda: db_mock
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
