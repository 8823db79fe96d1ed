"""
Token authority: issues, looks up, revokes and deletes credentials.

Owns the secret policy: secrets are ``token_bytes`` random bytes from the
``secrets`` module, hex encoded, and only their SHA-256 digest is persisted.
The plaintext leaves this module exactly once, in the return value of
``generate``; it is never logged and never part of an error message.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from pymongo.client_session import ClientSession

from errors import ConflictError, IssuanceConflictError, NotFoundError, ValidationError
from repositories.credential_repository import CredentialRepository
from schemas.models.credential import CredentialDoc
from shared.crypto import generate_token_secret, hash_token
from shared.datetime_utils import ensure_utc, utcnow
from shared.logging import get_logger, should_sample
from shared.validators import parse_object_id, validate_owner_id

log = get_logger(__name__)


class TokenAuthority:
    def __init__(
        self,
        repository: CredentialRepository,
        *,
        token_bytes: int = 32,
        max_issuance_attempts: int = 3,
    ) -> None:
        self._repo = repository
        self.token_bytes = token_bytes
        self.max_issuance_attempts = max_issuance_attempts

    def generate(
        self,
        owner_id: str,
        name: Optional[str],
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> tuple[str, CredentialDoc]:
        """Issue a credential for *owner_id* and return ``(secret, record)``.

        A secret_hash collision (unique index) is retried with a fresh secret;
        after ``max_issuance_attempts`` collisions IssuanceConflictError is raised.
        """
        owner_id = validate_owner_id(owner_id)
        if expires_at is not None:
            expires_at = ensure_utc(expires_at)

        for attempt in range(1, self.max_issuance_attempts + 1):
            secret = generate_token_secret(self.token_bytes)
            doc = CredentialDoc(
                owner_id=owner_id,
                name=name,
                description=description,
                secret_hash=hash_token(secret),
                expires_at=expires_at,
                revoked=False,
                created_at=utcnow(),
            )
            try:
                record = self._repo.insert(doc)
            except ConflictError:
                log.warning("credential_issuance_collision", owner_id=owner_id, attempt=attempt)
                continue
            log.info(
                "credential_issued",
                credential_id=str(record.id),
                owner_id=owner_id,
                expires_at=expires_at.isoformat() if expires_at else None,
            )
            return secret, record

        log.error(
            "credential_issuance_failed",
            owner_id=owner_id,
            attempts=self.max_issuance_attempts,
        )
        raise IssuanceConflictError("could not issue a unique credential")

    def find_by_hash(self, secret_hash: str) -> Optional[CredentialDoc]:
        return self._repo.find_by_hash(secret_hash)

    def find_by_token(self, secret: str) -> Optional[CredentialDoc]:
        record = self._repo.find_by_hash(hash_token(secret))
        if should_sample("credential_lookup"):
            log.debug("credential_lookup", found=record is not None)
        return record

    def find_by_id(self, credential_id: str) -> Optional[CredentialDoc]:
        return self._repo.find_by_id(parse_object_id(credential_id, "credential_id"))

    def list(self, owner_id: str) -> list[CredentialDoc]:
        """All credentials of *owner_id*, newest first."""
        return self._repo.list_by_owner(validate_owner_id(owner_id))

    def revoke(self, credential_id: str) -> CredentialDoc:
        """Mark the credential revoked. Revoking twice is not an error."""
        record = self._repo.mark_revoked(parse_object_id(credential_id, "credential_id"))
        if record is None:
            raise NotFoundError("credential not found", field="credential_id")
        log.info("credential_revoked", credential_id=str(record.id), owner_id=record.owner_id)
        return record

    def delete(self, credential_id: str) -> None:
        if not self._repo.delete(parse_object_id(credential_id, "credential_id")):
            raise NotFoundError("credential not found", field="credential_id")
        log.info("credential_deleted", credential_id=credential_id)

    def revoke_for_owners(
        self, owner_ids: Iterable[str], session: Optional[ClientSession] = None
    ) -> int:
        """Revoke every credential owned by *owner_ids*; used by principal cascades."""
        count = self._repo.revoke_by_owners(owner_ids, session=session)
        if count:
            log.info("credentials_revoked_for_owners", count=count)
        return count

    @staticmethod
    def is_valid(credential: CredentialDoc, now: Optional[datetime] = None) -> bool:
        """Pure validity check; re-fetch the record before calling to avoid staleness."""
        if credential is None:
            raise ValidationError("credential is required")
        return credential.is_valid(now)
