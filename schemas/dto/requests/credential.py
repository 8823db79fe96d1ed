"""
Request DTOs for credential (collection token) endpoints.

CreateCredentialRequest: POST /api/tokens
VerifyCredentialRequest: POST /api/tokens/verify
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from shared.datetime_utils import parse_datetime, utcnow


class CreateCredentialRequest(BaseModel):
    """Request body for POST /api/tokens."""

    model_config = ConfigDict(populate_by_name=True)

    owner_id: str
    name: str
    description: Optional[str] = None
    # ISO 8601 string or Unix epoch seconds; null means no expiration
    expires_at: Optional[Union[str, int, float]] = None

    @field_validator("owner_id", "name", mode="after")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("description", mode="after")
    @classmethod
    def _blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("expires_at", mode="after")
    @classmethod
    def _parseable_future(cls, v):
        if v is None:
            return None
        parsed = parse_datetime(v)
        if parsed is None:
            raise ValueError("expires_at must be ISO8601 or epoch seconds")
        if parsed <= utcnow():
            raise ValueError("expires_at must be in the future")
        return v

    @property
    def expires_at_datetime(self) -> Optional[datetime]:
        return parse_datetime(self.expires_at)


class VerifyCredentialRequest(BaseModel):
    """Request body for POST /api/tokens/verify."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
