"""
First-run system initialisation.

Creates the root administrator when no live admin exists and, optionally,
seeds the self-service registration settings. Safe to run repeatedly.
"""

from __future__ import annotations

from typing import Optional

from repositories.principal_repository import PrincipalRepository
from repositories.settings_repository import GlobalSettingsStore
from schemas.models.principal import PrincipalDoc
from services.principal_service import PrincipalService
from shared.logging import get_logger

log = get_logger(__name__)


def initialize_system(
    principals: PrincipalService,
    repository: PrincipalRepository,
    settings_store: GlobalSettingsStore,
    *,
    root_name: str,
    root_contact: str,
    self_service_enabled: Optional[bool] = None,
    self_service_permissions: Optional[list[str]] = None,
) -> Optional[tuple[str, PrincipalDoc]]:
    """Return ``(plaintext_key, admin)`` if a root admin was created, else None."""
    if self_service_enabled is not None:
        settings_store.update_self_service(
            self_service_enabled, self_service_permissions or []
        )
    else:
        settings_store.get()

    existing = repository.find_active_admin()
    if existing is not None:
        log.info("root_admin_exists", principal_id=str(existing.id), name=existing.name)
        return None

    log.warning("root_admin_missing_creating")
    return principals.create(root_name, root_contact, is_admin=True)
