"""
Principal repository: data access for the `principals` collection.

Every write that cascades takes the caller's session so it joins the same
transaction as the reads that chose its targets. Bulk writes are filtered on
the pre-state they change (permission absent, revoked_at unset), so the
returned modified counts are exact transition counts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database

from infrastructure.mongo import PRINCIPALS, translate_errors
from schemas.models.principal import PrincipalDoc


class PrincipalRepository:
    def __init__(self, db: Database) -> None:
        self._col = db[PRINCIPALS]

    # ── Reads ────────────────────────────────────────────────────────────────

    def find_by_id(
        self, principal_id: ObjectId, session: Optional[ClientSession] = None
    ) -> Optional[PrincipalDoc]:
        with translate_errors("find_principal_by_id", session):
            raw = self._col.find_one({"_id": principal_id}, session=session)
        return PrincipalDoc.from_mongo(raw)

    def find_by_key_hash(self, key_hash: str) -> Optional[PrincipalDoc]:
        with translate_errors("find_principal_by_key"):
            raw = self._col.find_one({"key_hash": key_hash})
        return PrincipalDoc.from_mongo(raw)

    def find_by_name(self, name: str) -> Optional[PrincipalDoc]:
        with translate_errors("find_principal_by_name"):
            raw = self._col.find_one({"name": name})
        return PrincipalDoc.from_mongo(raw)

    def find_children(
        self, parent_ids: Iterable[ObjectId], session: Optional[ClientSession] = None
    ) -> list[PrincipalDoc]:
        """Principals whose created_by is any of *parent_ids*, newest first."""
        parents = list(parent_ids)
        if not parents:
            return []
        with translate_errors("find_principal_children", session):
            cursor = self._col.find(
                {"created_by": {"$in": parents}}, session=session
            ).sort("created_at", DESCENDING)
            return PrincipalDoc.from_cursor(cursor)

    def find_active_admin(self) -> Optional[PrincipalDoc]:
        with translate_errors("find_active_admin"):
            raw = self._col.find_one({"is_admin": True, "revoked_at": None})
        return PrincipalDoc.from_mongo(raw)

    def list_all(self, *, include_revoked: bool = False) -> list[PrincipalDoc]:
        query: dict = {} if include_revoked else {"revoked_at": None}
        with translate_errors("list_principals"):
            cursor = self._col.find(query).sort("created_at", DESCENDING)
            return PrincipalDoc.from_cursor(cursor)

    # ── Writes ───────────────────────────────────────────────────────────────

    def insert(
        self, doc: PrincipalDoc, session: Optional[ClientSession] = None
    ) -> PrincipalDoc:
        with translate_errors("insert_principal", session):
            result = self._col.insert_one(doc.to_mongo(), session=session)
        return doc.model_copy(update={"id": result.inserted_id})

    def update_fields(self, principal_id: ObjectId, fields: dict) -> Optional[PrincipalDoc]:
        with translate_errors("update_principal"):
            raw = self._col.find_one_and_update(
                {"_id": principal_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        return PrincipalDoc.from_mongo(raw)

    def touch_last_used(self, principal_id: ObjectId, at: datetime) -> None:
        with translate_errors("touch_principal"):
            self._col.update_one({"_id": principal_id}, {"$set": {"last_used_at": at}})

    def add_permission(
        self,
        principal_ids: Iterable[ObjectId],
        permission: str,
        at: datetime,
        session: Optional[ClientSession] = None,
    ) -> int:
        """Add *permission* to every listed principal lacking it; returns the count."""
        ids = list(principal_ids)
        if not ids:
            return 0
        with translate_errors("add_permission", session):
            result = self._col.update_many(
                {"_id": {"$in": ids}, "permissions": {"$ne": permission}},
                {"$addToSet": {"permissions": permission}, "$set": {"updated_at": at}},
                session=session,
            )
        return result.modified_count

    def remove_permission(
        self,
        principal_ids: Iterable[ObjectId],
        permission: str,
        at: datetime,
        session: Optional[ClientSession] = None,
    ) -> int:
        """Pull *permission* from every listed principal holding it; returns the count."""
        ids = list(principal_ids)
        if not ids:
            return 0
        with translate_errors("remove_permission", session):
            result = self._col.update_many(
                {"_id": {"$in": ids}, "permissions": permission},
                {"$pull": {"permissions": permission}, "$set": {"updated_at": at}},
                session=session,
            )
        return result.modified_count

    def mark_revoked(
        self,
        principal_ids: Iterable[ObjectId],
        at: datetime,
        session: Optional[ClientSession] = None,
    ) -> int:
        """Set revoked_at on every listed principal not yet revoked; returns the count."""
        ids = list(principal_ids)
        if not ids:
            return 0
        with translate_errors("revoke_principals", session):
            result = self._col.update_many(
                {"_id": {"$in": ids}, "revoked_at": None},
                {"$set": {"revoked_at": at, "updated_at": at}},
                session=session,
            )
        return result.modified_count
