"""
Shared fixtures: an in-memory MongoDB (mongomock) and the service graph
wired against it with transactions disabled, since mongomock has no sessions.
"""

import mongomock
import pytest

from infrastructure.mongo import ensure_indexes
from repositories.credential_repository import CredentialRepository
from repositories.principal_repository import PrincipalRepository
from repositories.settings_repository import GlobalSettingsStore
from services.permission_engine import PermissionPropagationEngine
from services.principal_service import PrincipalService
from services.principal_tree import PrincipalTree
from services.token_authority import TokenAuthority


@pytest.fixture
def mock_db():
    db = mongomock.MongoClient().db
    ensure_indexes(db)
    return db


@pytest.fixture
def principal_repo(mock_db):
    return PrincipalRepository(mock_db)


@pytest.fixture
def credential_repo(mock_db):
    return CredentialRepository(mock_db)


@pytest.fixture
def settings_store(mock_db):
    return GlobalSettingsStore(mock_db)


@pytest.fixture
def tree(principal_repo):
    return PrincipalTree(principal_repo)


@pytest.fixture
def tokens(credential_repo):
    return TokenAuthority(credential_repo)


@pytest.fixture
def principals(principal_repo, tree, settings_store):
    return PrincipalService(principal_repo, tree, settings_store)


@pytest.fixture
def engine(mock_db, principal_repo, tree, tokens):
    return PermissionPropagationEngine(
        mock_db, principal_repo, tree, tokens, use_transactions=False
    )


@pytest.fixture
def family(principals):
    """root (admin) → child → grandchild, plus an unrelated root ``other``."""
    _, root = principals.create("root", "root@example.com", is_admin=True)
    _, child = principals.create("child", "child@example.com", created_by=str(root.id))
    _, grandchild = principals.create(
        "grandchild", "grandchild@example.com", created_by=str(child.id)
    )
    _, other = principals.create("other", "other@example.com")
    return {"root": root, "child": child, "grandchild": grandchild, "other": other}
