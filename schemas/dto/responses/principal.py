"""
Response DTOs for user (principal) and permission endpoints.

UserResponse: a principal as seen through the API
CreatedUserResponse: POST /api/users (201), includes ``api_key`` once
UserProfileResponse: GET /api/users/me, with direct creations
UserListResponse: GET /api/users
RevokedUsersResponse: POST /api/users/{id}/revoke, /me/revoke-all
RevokeSelfResponse: POST /api/users/me/revoke
PermissionListResponse: GET /api/permissions
UserPermissionsResponse: GET /api/permissions/me, /user-id/{id}
ChangePermissionResponse: POST /api/permissions/user-id/{id}/add|remove
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.principal import PrincipalDoc
from shared.datetime_utils import to_timestamp


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    contact: str
    department: Optional[str] = None
    is_admin: bool
    permissions: list[str]
    created_by_id: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    last_used_at: Optional[int] = None
    revoked_at: Optional[int] = None

    @classmethod
    def from_doc(cls, doc: PrincipalDoc, **extra) -> "UserResponse":
        return cls(
            id=str(doc.id),
            name=doc.name,
            contact=doc.contact,
            department=doc.department,
            is_admin=doc.is_admin,
            permissions=sorted(doc.permissions),
            created_by_id=str(doc.created_by) if doc.created_by else None,
            created_at=to_timestamp(doc.created_at),
            updated_at=to_timestamp(doc.updated_at),
            last_used_at=to_timestamp(doc.last_used_at),
            revoked_at=to_timestamp(doc.revoked_at),
            **extra,
        )


class CreatedUserResponse(UserResponse):
    """Shown once: the plaintext API key is never retrievable again."""

    api_key: str


class UserProfileResponse(UserResponse):
    created_users: list[UserResponse] = []


class UserListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: list[UserResponse]


class RevokedUsersResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    newly_revoked: int
    user_ids: list[str]


class RevokeSelfResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str
    revoked_at: int


class PermissionListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    permissions: list[str]
    descriptions: dict[str, str]


class UserPermissionsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    is_admin: bool
    permissions: list[str]

    @classmethod
    def from_doc(cls, doc: PrincipalDoc) -> "UserPermissionsResponse":
        return cls(
            id=str(doc.id),
            name=doc.name,
            is_admin=doc.is_admin,
            permissions=sorted(doc.permissions),
        )


class ChangePermissionResponse(UserPermissionsResponse):
    affected_users: int
