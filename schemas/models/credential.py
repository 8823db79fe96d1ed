"""
Credential document model.

Maps to the `credentials` MongoDB collection.

secret_hash stores SHA-256(secret); the secret is handed to the caller once
at issuance and never stored. owner_id is the scoping entity (a collection or a
principal id as a string) and is only ever compared for equality.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc, utcnow


class CredentialDoc(MongoBaseModel):
    """Document model for the `credentials` collection."""

    owner_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    secret_hash: str
    expires_at: Optional[datetime] = None
    revoked: bool = False
    created_at: Optional[datetime] = None

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Not revoked and not past ``expires_at``; no I/O."""
        if self.revoked:
            return False
        if self.expires_at is None:
            return True
        return ensure_utc(self.expires_at) > (ensure_utc(now) if now else utcnow())
