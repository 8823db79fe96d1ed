"""
Response DTOs for global settings endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.models.global_settings import GlobalSettingsDoc


class GlobalSettingsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    allow_self_service_registration: bool
    default_self_service_permissions: list[str]

    @classmethod
    def from_doc(cls, doc: GlobalSettingsDoc) -> "GlobalSettingsResponse":
        return cls(
            allow_self_service_registration=doc.allow_self_service_registration,
            default_self_service_permissions=list(doc.default_self_service_permissions),
        )
