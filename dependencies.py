"""
FastAPI dependency providers.

Services are cheap to build (they only hold collection handles and limits),
so each request gets fresh instances wired from app.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from config import AppSettings
from errors import AuthenticationError, ForbiddenError
from repositories.credential_repository import CredentialRepository
from repositories.principal_repository import PrincipalRepository
from repositories.settings_repository import GlobalSettingsStore
from schemas.models.principal import PrincipalDoc
from services.permission_engine import PermissionPropagationEngine
from services.principal_service import PrincipalService
from services.principal_tree import PrincipalTree
from services.token_authority import TokenAuthority


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_db(request: Request):
    """Return the MongoDB database from app.state."""
    return request.app.state.db


def get_settings_store(db=Depends(get_db)) -> GlobalSettingsStore:
    return GlobalSettingsStore(db)


def get_principal_tree(
    db=Depends(get_db), settings: AppSettings = Depends(get_settings)
) -> PrincipalTree:
    return PrincipalTree(
        PrincipalRepository(db), max_size=settings.security.max_cascade_size
    )


def get_token_authority(
    db=Depends(get_db), settings: AppSettings = Depends(get_settings)
) -> TokenAuthority:
    return TokenAuthority(
        CredentialRepository(db),
        token_bytes=settings.security.token_bytes,
        max_issuance_attempts=settings.security.max_issuance_attempts,
    )


def get_principal_service(
    db=Depends(get_db),
    settings: AppSettings = Depends(get_settings),
    tree: PrincipalTree = Depends(get_principal_tree),
    settings_store: GlobalSettingsStore = Depends(get_settings_store),
) -> PrincipalService:
    return PrincipalService(
        PrincipalRepository(db),
        tree,
        settings_store,
        api_key_prefix=settings.security.api_key_prefix,
        api_key_bytes=settings.security.api_key_bytes,
        max_issuance_attempts=settings.security.max_issuance_attempts,
    )


def get_permission_engine(
    db=Depends(get_db),
    settings: AppSettings = Depends(get_settings),
    tree: PrincipalTree = Depends(get_principal_tree),
    tokens: TokenAuthority = Depends(get_token_authority),
) -> PermissionPropagationEngine:
    return PermissionPropagationEngine(
        db,
        PrincipalRepository(db),
        tree,
        tokens,
        use_transactions=settings.db.use_transactions,
    )


def get_current_principal(
    authorization: Optional[str] = Header(default=None),
    principals: PrincipalService = Depends(get_principal_service),
) -> PrincipalDoc:
    """Resolve ``Authorization: Bearer <api key>`` to a live principal."""
    if not authorization:
        raise AuthenticationError("authorization header required")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        raise AuthenticationError("bearer API key required")
    return principals.authenticate(credentials.strip())


def require_admin(
    principal: PrincipalDoc = Depends(get_current_principal),
) -> PrincipalDoc:
    if not principal.is_admin:
        raise ForbiddenError("admin privileges required")
    return principal
