"""
Principal lifecycle: creation, self-service registration, authentication,
profile updates and the authority checks the management API applies before
calling the propagation engine.

Principals are only ever created by an existing, non-revoked principal (or
as roots), and created_by is never written again afterwards; that is what
keeps the created_by edges a forest.
"""

from __future__ import annotations

from typing import Iterable, Optional

from bson import ObjectId

from errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    IssuanceConflictError,
    NotFoundError,
    ValidationError,
)
from repositories.principal_repository import PrincipalRepository
from repositories.settings_repository import GlobalSettingsStore
from schemas.models.principal import PrincipalDoc
from services.principal_tree import PrincipalTree
from shared.crypto import generate_api_key, hash_token, is_valid_api_key_format
from shared.datetime_utils import utcnow
from shared.logging import get_logger, should_sample
from shared.validators import parse_object_id, validate_permission_name

log = get_logger(__name__)

_PROFILE_FIELDS = ("name", "contact", "department")


class PrincipalService:
    def __init__(
        self,
        repository: PrincipalRepository,
        tree: PrincipalTree,
        settings_store: GlobalSettingsStore,
        *,
        api_key_prefix: str = "kw_",
        api_key_bytes: int = 48,
        max_issuance_attempts: int = 3,
    ) -> None:
        self._repo = repository
        self._tree = tree
        self._settings = settings_store
        self.api_key_prefix = api_key_prefix
        self.api_key_bytes = api_key_bytes
        self.max_issuance_attempts = max_issuance_attempts

    # ── Creation ─────────────────────────────────────────────────────────────

    def create(
        self,
        name: str,
        contact: str,
        department: Optional[str] = None,
        is_admin: bool = False,
        permissions: Iterable[str] = (),
        created_by: Optional[str] = None,
    ) -> tuple[str, PrincipalDoc]:
        """Create a principal and return ``(plaintext_key, record)``.

        The key is shown once; only its SHA-256 hash is stored.
        """
        name = (name or "").strip()
        contact = (contact or "").strip()
        if not name:
            raise ValidationError("name is required", field="name")
        if not contact:
            raise ValidationError("contact is required", field="contact")
        perms = list(dict.fromkeys(validate_permission_name(p) for p in permissions))

        creator_oid = None
        if created_by is not None:
            creator_oid = parse_object_id(created_by, "created_by")
            creator = self._repo.find_by_id(creator_oid)
            if creator is None:
                raise NotFoundError("creator not found", field="created_by")
            if creator.is_revoked:
                raise InvalidStateError("revoked principals cannot create users", field="created_by")

        for attempt in range(1, self.max_issuance_attempts + 1):
            plaintext_key = generate_api_key(self.api_key_prefix, self.api_key_bytes)
            now = utcnow()
            doc = PrincipalDoc(
                name=name,
                contact=contact,
                department=department,
                is_admin=is_admin,
                permissions=perms,
                key_hash=hash_token(plaintext_key),
                created_by=creator_oid,
                created_at=now,
                updated_at=now,
            )
            try:
                principal = self._repo.insert(doc)
            except ConflictError:
                log.warning("principal_key_collision", attempt=attempt)
                continue
            log.info(
                "principal_created",
                principal_id=str(principal.id),
                name=name,
                is_admin=is_admin,
                permissions=perms,
                created_by=created_by,
            )
            return plaintext_key, principal

        raise IssuanceConflictError("could not issue a unique API key")

    def register_self_service(
        self, name: str, contact: str, department: Optional[str] = None
    ) -> tuple[str, PrincipalDoc]:
        """Create a root, non-admin principal if self-service registration is on."""
        settings = self._settings.get()
        if not settings.allow_self_service_registration:
            log.warning("self_service_registration_blocked", contact=contact)
            raise ForbiddenError("self-service registration is disabled")
        return self.create(
            name,
            contact,
            department=department,
            is_admin=False,
            permissions=settings.default_self_service_permissions,
        )

    # ── Authentication ───────────────────────────────────────────────────────

    def authenticate(self, plaintext_key: str) -> PrincipalDoc:
        """Resolve a presented API key to a live principal and stamp last_used_at."""
        if not plaintext_key or not is_valid_api_key_format(plaintext_key, self.api_key_prefix):
            raise AuthenticationError("invalid API key")

        principal = self._repo.find_by_key_hash(hash_token(plaintext_key))
        if principal is None:
            log.warning("principal_auth_unknown_key")
            raise AuthenticationError("invalid API key")
        if principal.is_revoked:
            log.warning(
                "principal_auth_revoked",
                principal_id=str(principal.id),
                revoked_at=principal.revoked_at.isoformat(),
            )
            raise AuthenticationError("API key has been revoked")

        now = utcnow()
        self._repo.touch_last_used(principal.id, now)
        if should_sample("principal_authenticated"):
            log.info("principal_authenticated", principal_id=str(principal.id))
        return principal.model_copy(update={"last_used_at": now})

    # ── Reads & profile ──────────────────────────────────────────────────────

    def get(self, principal_id: str) -> PrincipalDoc:
        principal = self._repo.find_by_id(parse_object_id(principal_id, "user_id"))
        if principal is None:
            raise NotFoundError("user not found", field="user_id")
        return principal

    def find_by_name(self, name: str) -> Optional[PrincipalDoc]:
        return self._repo.find_by_name(name)

    def list(self, include_revoked: bool = False) -> list[PrincipalDoc]:
        return self._repo.list_all(include_revoked=include_revoked)

    def created_by(self, creator_id: str) -> list[PrincipalDoc]:
        """Direct creations of *creator_id*, newest first."""
        return self._tree.children_of(parse_object_id(creator_id, "user_id"))

    def update_profile(self, principal_id: str, **fields) -> PrincipalDoc:
        updates = {k: v for k, v in fields.items() if k in _PROFILE_FIELDS and v is not None}
        for key in ("name", "contact"):
            if key in updates:
                updates[key] = updates[key].strip()
                if not updates[key]:
                    raise ValidationError(f"{key} cannot be empty", field=key)
        if not updates:
            return self.get(principal_id)

        updates["updated_at"] = utcnow()
        principal = self._repo.update_fields(parse_object_id(principal_id, "user_id"), updates)
        if principal is None:
            raise NotFoundError("user not found", field="user_id")
        log.info("principal_updated", principal_id=principal_id, updates=sorted(updates))
        return principal

    # ── Authority checks ─────────────────────────────────────────────────────

    def can_manage(self, manager: PrincipalDoc, target_id: str) -> bool:
        """Admins manage anyone but themselves; others manage their subtree."""
        target_oid = parse_object_id(target_id, "user_id")
        if manager.id == target_oid:
            return False
        if manager.is_admin:
            return True
        return self._tree.is_ancestor_of(manager.id, target_oid)

    def can_access_owner(self, actor: PrincipalDoc, owner_id: str) -> bool:
        """Credentials scoped to *owner_id* are reachable by admins, the owner
        itself, and the owner's ancestors. Non-principal owners are admin-only.
        """
        if actor.is_admin or owner_id == str(actor.id):
            return True
        if not ObjectId.is_valid(owner_id):
            return False
        return self.can_manage(actor, owner_id)

    @staticmethod
    def can_grant(granter: PrincipalDoc, permissions: Iterable[str]) -> bool:
        """Non-admins may only hand out permissions they hold themselves."""
        if granter.is_admin:
            return True
        held = set(granter.permissions)
        return all(p in held for p in permissions)
