"""
Request DTOs for user (principal) and permission endpoints.

CreateUserRequest: POST /api/users and POST /api/users/self
UpdateUserRequest: PUT /api/users/me
ChangePermissionRequest: POST /api/permissions/user-id/{id}/add|remove
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.models.principal import PermissionType


def _check_contact(v: str) -> str:
    v = v.strip()
    local, _, domain = v.partition("@")
    if not local or "." not in domain:
        raise ValueError("valid email address required")
    return v


class CreateUserRequest(BaseModel):
    """Request body for POST /api/users."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    contact: str
    department: Optional[str] = None
    permissions: list[PermissionType] = []
    is_admin: bool = False

    @field_validator("name", mode="after")
    @classmethod
    def _name_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("contact", mode="after")
    @classmethod
    def _contact_is_email(cls, v: str) -> str:
        return _check_contact(v)

    @property
    def permission_names(self) -> list[str]:
        return [p.value for p in self.permissions]


class UpdateUserRequest(BaseModel):
    """Request body for PUT /api/users/me. Omitted fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    contact: Optional[str] = None
    department: Optional[str] = None

    @field_validator("contact", mode="after")
    @classmethod
    def _contact_is_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _check_contact(v)


class ChangePermissionRequest(BaseModel):
    """Request body for the add/remove permission endpoints.

    ``propagate`` is ignored by remove, which always cascades.
    """

    model_config = ConfigDict(populate_by_name=True)

    permissions: list[PermissionType] = Field(min_length=1)
    propagate: bool = True

    @property
    def permission_names(self) -> list[str]:
        return list(dict.fromkeys(p.value for p in self.permissions))
