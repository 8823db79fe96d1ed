"""
User (principal) endpoints.

POST /api/users/self: self-service registration (no auth, if enabled)
POST /api/users: create a user (CREATE_USER)
GET /api/users: list users (LIST_USERS)
GET /api/users/me: own profile with direct creations
PUT /api/users/me: update own profile
POST /api/users/me/revoke: revoke own API key and credentials
POST /api/users/me/revoke-all: revoke everything you created
POST /api/users/{user_id}/revoke: revoke a user in your subtree (cascades)
GET /api/users/by-name/{name}: look a user up by name (admin)
POST /api/users/by-name/{name}/revoke: revoke a user by name, cascading (admin)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from dependencies import (
    get_current_principal,
    get_permission_engine,
    get_principal_service,
    require_admin,
)
from errors import ForbiddenError, NotFoundError
from schemas.dto.requests.principal import CreateUserRequest, UpdateUserRequest
from schemas.dto.responses.common import AUTH_ERROR_RESPONSES
from schemas.dto.responses.principal import (
    CreatedUserResponse,
    RevokedUsersResponse,
    RevokeSelfResponse,
    UserListResponse,
    UserProfileResponse,
    UserResponse,
)
from schemas.models.principal import PermissionType, PrincipalDoc
from services.permission_engine import PermissionPropagationEngine, RevocationResult
from services.principal_service import PrincipalService
from shared.datetime_utils import to_timestamp
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"], responses=AUTH_ERROR_RESPONSES)


def _revoked_response(result: RevocationResult) -> RevokedUsersResponse:
    return RevokedUsersResponse(
        total=len(result.revoked_ids),
        newly_revoked=result.newly_revoked,
        user_ids=result.revoked_ids,
    )


@router.post("/self", status_code=201, response_model=CreatedUserResponse)
def register_self(
    body: CreateUserRequest,
    principals: PrincipalService = Depends(get_principal_service),
) -> CreatedUserResponse:
    plaintext_key, principal = principals.register_self_service(
        body.name, body.contact, department=body.department
    )
    return CreatedUserResponse.from_doc(principal, api_key=plaintext_key)


@router.post("", status_code=201, response_model=CreatedUserResponse)
def create_user(
    body: CreateUserRequest,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
) -> CreatedUserResponse:
    if not actor.has_permission(PermissionType.CREATE_USER.value):
        raise ForbiddenError("CREATE_USER permission required")
    if not principals.can_grant(actor, body.permission_names):
        log.warning(
            "user_create_denied",
            actor_id=str(actor.id),
            reason="ungrantable_permissions",
            requested=body.permission_names,
        )
        raise ForbiddenError("you can only grant permissions you currently have")
    if body.is_admin and not actor.is_admin:
        raise ForbiddenError("only admins can create admin users")

    plaintext_key, principal = principals.create(
        body.name,
        body.contact,
        department=body.department,
        is_admin=body.is_admin,
        permissions=body.permission_names,
        created_by=str(actor.id),
    )
    return CreatedUserResponse.from_doc(principal, api_key=plaintext_key)


@router.get("", response_model=UserListResponse)
def list_users(
    include_revoked: bool = Query(default=False),
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
) -> UserListResponse:
    if not actor.has_permission(PermissionType.LIST_USERS.value):
        raise ForbiddenError("LIST_USERS permission required")
    users = principals.list(include_revoked=include_revoked)
    return UserListResponse(users=[UserResponse.from_doc(u) for u in users])


@router.get("/me", response_model=UserProfileResponse)
def get_me(
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
) -> UserProfileResponse:
    created = principals.created_by(str(actor.id))
    return UserProfileResponse.from_doc(
        actor, created_users=[UserResponse.from_doc(u) for u in created]
    )


@router.put("/me", response_model=UserResponse)
def update_me(
    body: UpdateUserRequest,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
) -> UserResponse:
    updated = principals.update_profile(str(actor.id), **body.model_dump(exclude_none=True))
    return UserResponse.from_doc(updated)


@router.post("/me/revoke", response_model=RevokeSelfResponse)
def revoke_me(
    actor: PrincipalDoc = Depends(get_current_principal),
    engine: PermissionPropagationEngine = Depends(get_permission_engine),
) -> RevokeSelfResponse:
    revoked_at = engine.revoke_self(str(actor.id))
    return RevokeSelfResponse(user_id=str(actor.id), revoked_at=to_timestamp(revoked_at))


@router.post("/me/revoke-all", response_model=RevokedUsersResponse)
def revoke_all_created(
    actor: PrincipalDoc = Depends(get_current_principal),
    engine: PermissionPropagationEngine = Depends(get_permission_engine),
) -> RevokedUsersResponse:
    return _revoked_response(engine.revoke_all_created(str(actor.id)))


@router.post("/{user_id}/revoke", response_model=RevokedUsersResponse)
def revoke_user(
    user_id: str,
    actor: PrincipalDoc = Depends(get_current_principal),
    engine: PermissionPropagationEngine = Depends(get_permission_engine),
) -> RevokedUsersResponse:
    return _revoked_response(engine.revoke_created(str(actor.id), user_id))


def _by_name(principals: PrincipalService, name: str) -> PrincipalDoc:
    principal = principals.find_by_name(name)
    if principal is None:
        raise NotFoundError("user not found", field="name")
    return principal


@router.get("/by-name/{name}", response_model=UserResponse)
def get_user_by_name(
    name: str,
    _admin: PrincipalDoc = Depends(require_admin),
    principals: PrincipalService = Depends(get_principal_service),
) -> UserResponse:
    return UserResponse.from_doc(_by_name(principals, name))


@router.post("/by-name/{name}/revoke", response_model=RevokedUsersResponse)
def revoke_user_by_name(
    name: str,
    admin: PrincipalDoc = Depends(require_admin),
    principals: PrincipalService = Depends(get_principal_service),
    engine: PermissionPropagationEngine = Depends(get_permission_engine),
) -> RevokedUsersResponse:
    target = _by_name(principals, name)
    return _revoked_response(engine.revoke_as_admin(str(admin.id), str(target.id)))
