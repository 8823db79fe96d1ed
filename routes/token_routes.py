"""
Credential endpoints.

POST /api/tokens: issue a credential (secret returned once)
GET /api/tokens?owner_id=: list an owner's credentials, newest first
POST /api/tokens/verify: check a presented secret
POST /api/tokens/{id}/revoke: revoke (idempotent)
DELETE /api/tokens/{id}: hard delete

All endpoints require an authenticated principal. Credentials are reachable by
admins, by their owner and by the owner's ancestors; verify only needs a secret.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from dependencies import get_current_principal, get_principal_service, get_token_authority
from errors import ForbiddenError, NotFoundError
from schemas.dto.requests.credential import CreateCredentialRequest, VerifyCredentialRequest
from schemas.dto.responses.common import AUTH_ERROR_RESPONSES
from schemas.dto.responses.credential import (
    CredentialActionResponse,
    CredentialCreatedResponse,
    CredentialListResponse,
    CredentialResponse,
    VerifyCredentialResponse,
)
from schemas.models.credential import CredentialDoc
from schemas.models.principal import PrincipalDoc
from services.principal_service import PrincipalService
from services.token_authority import TokenAuthority
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(
    prefix="/api/tokens",
    tags=["tokens"],
    dependencies=[Depends(get_current_principal)],
    responses=AUTH_ERROR_RESPONSES,
)


def _authorize_owner(
    actor: PrincipalDoc, owner_id: str, principals: PrincipalService
) -> None:
    if principals.can_access_owner(actor, owner_id):
        return
    log.warning("credential_access_denied", actor_id=str(actor.id), owner_id=owner_id)
    raise ForbiddenError("credential belongs to an owner outside your scope", field="owner_id")


def _load_owned(
    credential_id: str,
    actor: PrincipalDoc,
    principals: PrincipalService,
    tokens: TokenAuthority,
) -> CredentialDoc:
    record = tokens.find_by_id(credential_id)
    if record is None:
        raise NotFoundError("credential not found", field="credential_id")
    _authorize_owner(actor, record.owner_id, principals)
    return record


@router.post("", status_code=201, response_model=CredentialCreatedResponse)
def create_token(
    body: CreateCredentialRequest,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
    tokens: TokenAuthority = Depends(get_token_authority),
) -> CredentialCreatedResponse:
    _authorize_owner(actor, body.owner_id, principals)
    secret, record = tokens.generate(
        body.owner_id,
        body.name,
        description=body.description,
        expires_at=body.expires_at_datetime,
    )
    return CredentialCreatedResponse.from_doc(record, token=secret)


@router.get("", response_model=CredentialListResponse)
def list_tokens(
    owner_id: str = Query(min_length=1),
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
    tokens: TokenAuthority = Depends(get_token_authority),
) -> CredentialListResponse:
    _authorize_owner(actor, owner_id, principals)
    return CredentialListResponse(
        tokens=[CredentialResponse.from_doc(doc) for doc in tokens.list(owner_id)]
    )


@router.post("/verify", response_model=VerifyCredentialResponse)
def verify_token(
    body: VerifyCredentialRequest,
    tokens: TokenAuthority = Depends(get_token_authority),
) -> VerifyCredentialResponse:
    record = tokens.find_by_token(body.token)
    if record is None:
        return VerifyCredentialResponse(valid=False)
    return VerifyCredentialResponse(
        valid=tokens.is_valid(record),
        credential_id=str(record.id),
        owner_id=record.owner_id,
    )


@router.get("/{credential_id}", response_model=CredentialResponse)
def get_token(
    credential_id: str,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
    tokens: TokenAuthority = Depends(get_token_authority),
) -> CredentialResponse:
    record = _load_owned(credential_id, actor, principals, tokens)
    return CredentialResponse.from_doc(record)


@router.post("/{credential_id}/revoke", response_model=CredentialActionResponse)
def revoke_token(
    credential_id: str,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
    tokens: TokenAuthority = Depends(get_token_authority),
) -> CredentialActionResponse:
    _load_owned(credential_id, actor, principals, tokens)
    tokens.revoke(credential_id)
    return CredentialActionResponse(success=True, action="revoked")


@router.delete("/{credential_id}", response_model=CredentialActionResponse)
def delete_token(
    credential_id: str,
    actor: PrincipalDoc = Depends(get_current_principal),
    principals: PrincipalService = Depends(get_principal_service),
    tokens: TokenAuthority = Depends(get_token_authority),
) -> CredentialActionResponse:
    _load_owned(credential_id, actor, principals, tokens)
    tokens.delete(credential_id)
    return CredentialActionResponse(success=True, action="deleted")
