"""
Principal document model.

Maps to the `principals` MongoDB collection.

A principal is an API user: it authenticates with its own API key (only
key_hash is stored), holds a set of permission names, and may create further
principals. created_by is written once at creation and never changes, so the
created_by edges always form a forest. revoked_at is the terminal state;
revoked principals stay in the tree.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from schemas.models.base import MongoBaseModel, PyObjectId


class PermissionType(str, Enum):
    """Permissions the management API knows how to enforce."""

    CREATE_USER = "CREATE_USER"
    ADD_MCP = "ADD_MCP"
    LIST_USERS = "LIST_USERS"
    VIEW_PERMISSIONS = "VIEW_PERMISSIONS"


PERMISSION_DESCRIPTIONS: dict[str, str] = {
    PermissionType.CREATE_USER.value: "Allows creating new users with permissions they possess",
    PermissionType.ADD_MCP.value: "Allows adding new MCPs to the system",
    PermissionType.LIST_USERS.value: "Allows listing all users in the system",
    PermissionType.VIEW_PERMISSIONS.value: "Allows checking other users permissions",
}


class PrincipalDoc(MongoBaseModel):
    """Document model for the `principals` collection."""

    name: str
    contact: str
    department: Optional[str] = None
    is_admin: bool = False
    permissions: list[str] = []
    key_hash: str
    created_by: Optional[PyObjectId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def has_permission(self, permission: str) -> bool:
        return self.is_admin or permission in self.permissions
