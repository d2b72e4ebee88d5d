"""
Configuration partagée pour tous les tests.
Override les dépendances get_db / get_optional_db pour éviter toute connexion réelle à PostgreSQL.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from app.database import get_db, get_optional_db
from app.main import app


@pytest.fixture
def mock_db():
    """Session SQLAlchemy mockée, partagée par le client de la fixture."""
    return MagicMock()


@pytest.fixture
def client(mock_db):
    """Client HTTP de test avec la BDD mockée."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_optional_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
