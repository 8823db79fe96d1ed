"""
Global settings endpoints.

GET /api/settings: current settings (authenticated)
PUT /api/settings/self-service: toggle self-service registration (admin)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_current_principal, get_settings_store, require_admin
from repositories.settings_repository import GlobalSettingsStore
from schemas.dto.requests.settings import UpdateSelfServiceRequest
from schemas.dto.responses.common import AUTH_ERROR_RESPONSES
from schemas.dto.responses.settings import GlobalSettingsResponse

router = APIRouter(prefix="/api/settings", tags=["settings"], responses=AUTH_ERROR_RESPONSES)


@router.get(
    "",
    response_model=GlobalSettingsResponse,
    dependencies=[Depends(get_current_principal)],
)
def get_global_settings(
    store: GlobalSettingsStore = Depends(get_settings_store),
) -> GlobalSettingsResponse:
    return GlobalSettingsResponse.from_doc(store.get())


@router.put(
    "/self-service",
    response_model=GlobalSettingsResponse,
    dependencies=[Depends(require_admin)],
)
def update_self_service(
    body: UpdateSelfServiceRequest,
    store: GlobalSettingsStore = Depends(get_settings_store),
) -> GlobalSettingsResponse:
    updated = store.update_self_service(
        body.enabled, [p.value for p in body.default_permissions]
    )
    return GlobalSettingsResponse.from_doc(updated)
