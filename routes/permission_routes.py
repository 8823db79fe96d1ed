"""
Permission endpoints.

GET /api/permissions: permission catalogue (no auth)
GET /api/permissions/me: own permissions
GET /api/permissions/user-id/{id}: a user's permissions (VIEW_PERMISSIONS)
POST /api/permissions/user-id/{id}/add: grant, optionally cascading
POST /api/permissions/user-id/{id}/remove: remove, always cascading

Granting and removing require that the actor manages the target (admin, or
an ancestor in the creation tree) and, for non-admins, already holds every
permission named in the request.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_current_principal, get_permission_engine, get_principal_service
from errors import ForbiddenError
from schemas.dto.requests.principal import ChangePermissionRequest
from schemas.dto.responses.common import AUTH_ERROR_RESPONSES
from schemas.dto.responses.principal import (
    ChangePermissionResponse,
    PermissionListResponse,
    UserPermissionsResponse,
)
from schemas.models.principal import PERMISSION_DESCRIPTIONS, PermissionType, PrincipalDoc
from services.permission_engine import GrantResult, PermissionPropagationEngine
from services.principal_service import PrincipalService

router = APIRouter(
    prefix="/api/permissions", tags=["permissions"], responses=AUTH_ERROR_RESPONSES
)


def _authorize_change(
    actor: PrincipalDoc,
    target_id: str,
    permissions: list[str],
    principals: PrincipalService,
) -> None:
    principals.get(target_id)
    if not principals.can_manage(actor, target_id):
        raise ForbiddenError(
            "you can only manage permissions for users you created or their descendants"
        )
    if not principals.can_grant(actor, permissions):
        raise ForbiddenError("you can only change permissions you currently have")


def _change_response(result: GrantResult, affected: int) -> ChangePermissionResponse:
    base = UserPermissionsResponse.from_doc(result.target)
    return ChangePermissionResponse(**base.model_dump(), affected_users=affected)


@router.get("", response_model=PermissionListResponse)
def list_permission_types() -> PermissionListResponse:
    return PermissionListResponse(
        permissions=[p.value for p in PermissionType],
        descriptions=PERMISSION_DESCRIPTIONS,
    )


@router.get("/me", response_model=UserPermissionsResponse)
def my_permissions(
    actor: PrincipalDoc = Depends(get_current_principal),
) -> UserPermissionsResponse:
    return UserPermissionsResponse.from_doc(actor)


@router.get("/user-id/{user_id}", response_model=UserPermissionsResponse)
def user_permissions(
    user_id: str,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
) -> UserPermissionsResponse:
    if not actor.has_permission(PermissionType.VIEW_PERMISSIONS.value):
        raise ForbiddenError("VIEW_PERMISSIONS permission required")
    return UserPermissionsResponse.from_doc(principals.get(user_id))


@router.post("/user-id/{user_id}/add", status_code=201, response_model=ChangePermissionResponse)
def add_permissions(
    user_id: str,
    body: ChangePermissionRequest,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
    engine: PermissionPropagationEngine = Depends(get_permission_engine),
) -> ChangePermissionResponse:
    names = body.permission_names
    _authorize_change(actor, user_id, names, principals)

    affected = 0
    result = None
    for permission in names:
        result = engine.add_permission(str(actor.id), user_id, permission, body.propagate)
        affected = max(affected, result.affected_count)
    return _change_response(result, affected)


@router.post("/user-id/{user_id}/remove", response_model=ChangePermissionResponse)
def remove_permissions(
    user_id: str,
    body: ChangePermissionRequest,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
    engine: PermissionPropagationEngine = Depends(get_permission_engine),
) -> ChangePermissionResponse:
    names = body.permission_names
    _authorize_change(actor, user_id, names, principals)

    affected = 0
    result = None
    for permission in names:
        result = engine.remove_permission(str(actor.id), user_id, permission)
        affected = max(affected, result.affected_count)
    return _change_response(result, affected)
