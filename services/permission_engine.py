"""
Permission propagation engine: grants and cascading revocations over the
principal forest.

Each public operation is a single run_in_transaction() call: the existence,
subtree-membership and ownership checks read through the same session as the
writes that follow, so nothing is written unless every check passed against
the snapshot being written to. Counts returned are principals that actually
changed state, never nodes visited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo.client_session import ClientSession
from pymongo.database import Database

from errors import ForbiddenError, InvalidStateError, NotFoundError
from infrastructure.mongo import run_in_transaction
from repositories.principal_repository import PrincipalRepository
from schemas.models.principal import PrincipalDoc
from services.principal_tree import PrincipalTree
from services.token_authority import TokenAuthority
from shared.datetime_utils import utcnow
from shared.logging import get_logger, log_with_context
from shared.validators import parse_object_id, validate_permission_name

log = get_logger(__name__)


@dataclass
class GrantResult:
    target: PrincipalDoc
    affected_count: int


@dataclass
class RevocationResult:
    revoked_ids: list[str] = field(default_factory=list)
    newly_revoked: int = 0
    credentials_revoked: int = 0


class PermissionPropagationEngine:
    def __init__(
        self,
        db: Database,
        principals: PrincipalRepository,
        tree: PrincipalTree,
        tokens: TokenAuthority,
        *,
        use_transactions: bool = True,
    ) -> None:
        self._db = db
        self._principals = principals
        self._tree = tree
        self._tokens = tokens
        self.use_transactions = use_transactions

    def _transaction(self, callback):
        return run_in_transaction(self._db, callback, enabled=self.use_transactions)

    def _load(
        self, principal_id: ObjectId, session: Optional[ClientSession], field_name: str
    ) -> PrincipalDoc:
        principal = self._principals.find_by_id(principal_id, session=session)
        if principal is None:
            raise NotFoundError("principal not found", field=field_name)
        return principal

    # ── Grants ───────────────────────────────────────────────────────────────

    def add_permission(
        self,
        actor_id: str,
        target_id: str,
        permission: str,
        propagate: bool = False,
    ) -> GrantResult:
        """Add *permission* to the target (and, with *propagate*, its subtree).

        Revoked descendants are skipped; a revoked target is InvalidStateError.
        """
        target_oid = parse_object_id(target_id, "target_id")
        permission = validate_permission_name(permission)
        bound = log_with_context(log, actor_id=actor_id, target_id=target_id)

        def _apply(session: Optional[ClientSession]) -> GrantResult:
            target = self._load(target_oid, session, "target_id")
            if target.is_revoked:
                raise InvalidStateError("cannot grant to a revoked principal", field="target_id")

            members = [target_oid]
            if propagate:
                members.extend(
                    p.id for p in self._tree.subtree_of(target_oid, session=session)
                    if not p.is_revoked
                )
            affected = self._principals.add_permission(
                members, permission, utcnow(), session=session
            )
            refreshed = self._load(target_oid, session, "target_id")
            return GrantResult(target=refreshed, affected_count=affected)

        result = self._transaction(_apply)
        bound.info(
            "permission_added",
            permission=permission,
            propagate=propagate,
            affected_count=result.affected_count,
        )
        return result

    def remove_permission(
        self, actor_id: str, target_id: str, permission: str
    ) -> GrantResult:
        """Remove *permission* from the target and its whole subtree."""
        target_oid = parse_object_id(target_id, "target_id")
        permission = validate_permission_name(permission)

        def _apply(session: Optional[ClientSession]) -> GrantResult:
            self._load(target_oid, session, "target_id")
            members = [target_oid]
            members.extend(p.id for p in self._tree.subtree_of(target_oid, session=session))
            affected = self._principals.remove_permission(
                members, permission, utcnow(), session=session
            )
            refreshed = self._load(target_oid, session, "target_id")
            return GrantResult(target=refreshed, affected_count=affected)

        result = self._transaction(_apply)
        log.info(
            "permission_removed",
            actor_id=actor_id,
            target_id=target_id,
            permission=permission,
            affected_count=result.affected_count,
        )
        return result

    # ── Revocation ───────────────────────────────────────────────────────────

    def _revoke_subtrees(
        self,
        roots: list[PrincipalDoc],
        at: datetime,
        session: Optional[ClientSession],
    ) -> RevocationResult:
        ordered: dict[ObjectId, None] = {}
        for root in roots:
            ordered.setdefault(root.id, None)
            for member in self._tree.subtree_of(root.id, session=session):
                ordered.setdefault(member.id, None)
        if len(ordered) > self._tree.max_size:
            raise InvalidStateError("cascade too large", details={"limit": self._tree.max_size})

        ids = list(ordered)
        newly = self._principals.mark_revoked(ids, at, session=session)
        creds = self._tokens.revoke_for_owners([str(i) for i in ids], session=session)
        return RevocationResult(
            revoked_ids=[str(i) for i in ids],
            newly_revoked=newly,
            credentials_revoked=creds,
        )

    def revoke_created(self, actor_id: str, user_id: str) -> RevocationResult:
        """Revoke *user_id* and everything it created, transitively.

        ForbiddenError unless *user_id* sits inside the actor's subtree.
        """
        actor_oid = parse_object_id(actor_id, "actor_id")
        user_oid = parse_object_id(user_id, "user_id")

        def _apply(session: Optional[ClientSession]) -> RevocationResult:
            target = self._load(user_oid, session, "user_id")
            if not self._tree.is_ancestor_of(actor_oid, user_oid, session=session):
                raise ForbiddenError(
                    "principal was not created by the actor", field="user_id"
                )
            return self._revoke_subtrees([target], utcnow(), session)

        result = self._transaction(_apply)
        log.info(
            "principal_revoked_cascade",
            actor_id=actor_id,
            user_id=user_id,
            cascade_count=len(result.revoked_ids),
            newly_revoked=result.newly_revoked,
            credentials_revoked=result.credentials_revoked,
        )
        return result

    def revoke_as_admin(self, actor_id: str, user_id: str) -> RevocationResult:
        """Revoke any principal but the actor itself, cascading like revoke_created."""
        actor_oid = parse_object_id(actor_id, "actor_id")
        user_oid = parse_object_id(user_id, "user_id")

        def _apply(session: Optional[ClientSession]) -> RevocationResult:
            actor = self._load(actor_oid, session, "actor_id")
            if not actor.is_admin:
                raise ForbiddenError("admin privileges required")
            if actor_oid == user_oid:
                raise ForbiddenError("use self-revocation to revoke yourself", field="user_id")
            target = self._load(user_oid, session, "user_id")
            return self._revoke_subtrees([target], utcnow(), session)

        result = self._transaction(_apply)
        log.info(
            "principal_revoked_by_admin",
            actor_id=actor_id,
            user_id=user_id,
            cascade_count=len(result.revoked_ids),
            newly_revoked=result.newly_revoked,
            credentials_revoked=result.credentials_revoked,
        )
        return result

    def revoke_all_created(self, actor_id: str) -> RevocationResult:
        """Revoke every direct child of the actor together with its subtree."""
        actor_oid = parse_object_id(actor_id, "actor_id")

        def _apply(session: Optional[ClientSession]) -> RevocationResult:
            self._load(actor_oid, session, "actor_id")
            children = self._tree.children_of(actor_oid, session=session)
            return self._revoke_subtrees(children, utcnow(), session)

        result = self._transaction(_apply)
        log.info(
            "principal_revoked_all_created",
            actor_id=actor_id,
            cascade_count=len(result.revoked_ids),
            newly_revoked=result.newly_revoked,
            credentials_revoked=result.credentials_revoked,
        )
        return result

    def revoke_self(self, actor_id: str) -> datetime:
        """Revoke the actor's own key and credentials; descendants are untouched."""
        actor_oid = parse_object_id(actor_id, "actor_id")

        def _apply(session: Optional[ClientSession]) -> datetime:
            actor = self._load(actor_oid, session, "actor_id")
            at = actor.revoked_at or utcnow()
            self._principals.mark_revoked([actor_oid], at, session=session)
            self._tokens.revoke_for_owners([str(actor_oid)], session=session)
            return at

        revoked_at = self._transaction(_apply)
        log.info("principal_revoked_self", actor_id=actor_id)
        return revoked_at
