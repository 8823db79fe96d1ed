"""
Input validators: pure functions shared by services and DTOs.
"""

from __future__ import annotations

import re
from typing import Any

from bson import ObjectId

from errors import ValidationError

_PERMISSION_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_:.\-]{0,63}$")


def parse_object_id(value: Any, field: str = "id") -> ObjectId:
    """Coerce *value* to an ObjectId or raise ValidationError naming *field*."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValidationError(f"invalid {field}", field=field)


def validate_permission_name(permission: str) -> str:
    """Permission names are short identifiers; whitespace and punctuation soup rejected."""
    if not isinstance(permission, str) or not _PERMISSION_NAME_RE.match(permission):
        raise ValidationError("invalid permission name", field="permission")
    return permission


def validate_owner_id(owner_id: str) -> str:
    owner_id = (owner_id or "").strip()
    if not owner_id:
        raise ValidationError("owner_id is required", field="owner_id")
    return owner_id
