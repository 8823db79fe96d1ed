"""
Response DTOs for credential endpoints.

CredentialResponse: one entry in GET /api/tokens
CredentialCreatedResponse: POST /api/tokens (201), includes ``token`` once
CredentialListResponse: GET /api/tokens (200)
CredentialActionResponse: revoke / delete (200)
VerifyCredentialResponse: POST /api/tokens/verify (200)

``created_at`` and ``expires_at`` are Unix timestamp integers.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.credential import CredentialDoc
from shared.datetime_utils import to_timestamp


class CredentialResponse(BaseModel):
    """A single credential. The secret is never part of this shape."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[int] = None  # Unix timestamp
    expires_at: Optional[int] = None  # Unix timestamp or null
    revoked: bool
    valid: bool

    @classmethod
    def from_doc(cls, doc: CredentialDoc, **extra) -> "CredentialResponse":
        return cls(
            id=str(doc.id),
            owner_id=doc.owner_id,
            name=doc.name,
            description=doc.description,
            created_at=to_timestamp(doc.created_at),
            expires_at=to_timestamp(doc.expires_at),
            revoked=doc.revoked,
            valid=doc.is_valid(),
            **extra,
        )


class CredentialCreatedResponse(CredentialResponse):
    """Response for POST /api/tokens (201).

    The ONLY time the secret is returned; it is hashed before storage.
    """

    token: str


class CredentialListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tokens: list[CredentialResponse]


class CredentialActionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    action: str  # "deleted" or "revoked"


class VerifyCredentialResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    credential_id: Optional[str] = None
    owner_id: Optional[str] = None
