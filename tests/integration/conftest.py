"""
Integration fixtures: the real application factory with MongoClient swapped
for mongomock, plus a bootstrapped root administrator.
"""

import mongomock
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import AppSettings
from repositories.principal_repository import PrincipalRepository
from repositories.settings_repository import GlobalSettingsStore
from services.bootstrap import initialize_system
from services.principal_service import PrincipalService
from services.principal_tree import PrincipalTree


@pytest.fixture
def app_settings(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    monkeypatch.setenv("DB_NAME", "keywarden_test")
    monkeypatch.setenv("USE_TRANSACTIONS", "false")
    monkeypatch.setenv("SENTRY_DSN", "")
    return AppSettings()


@pytest.fixture
def client(app_settings, mocker):
    mocker.patch("app.create_client", return_value=mongomock.MongoClient())
    app = create_app(app_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def root_key(client):
    """Plaintext API key of a freshly bootstrapped root admin."""
    db = client.app.state.db
    repository = PrincipalRepository(db)
    store = GlobalSettingsStore(db)
    principals = PrincipalService(repository, PrincipalTree(repository), store)
    key, _ = initialize_system(
        principals, repository, store, root_name="root", root_contact="ops@example.com"
    )
    return key
