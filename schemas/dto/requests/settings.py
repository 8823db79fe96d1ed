"""
Request DTOs for global settings endpoints.

UpdateSelfServiceRequest: PUT /api/settings/self-service
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.models.principal import PermissionType


class UpdateSelfServiceRequest(BaseModel):
    """Request body for PUT /api/settings/self-service."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool
    default_permissions: list[PermissionType] = []
