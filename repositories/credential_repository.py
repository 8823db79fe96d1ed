"""
Credential repository: data access for the `credentials` collection.

Pure persistence: no hashing, no validity policy. Uniqueness of secret_hash
is enforced by the index created in infrastructure.mongo.ensure_indexes and
surfaces here as ConflictError.
"""

from __future__ import annotations

from typing import Iterable, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database

from infrastructure.mongo import CREDENTIALS, translate_errors
from schemas.models.credential import CredentialDoc


class CredentialRepository:
    def __init__(self, db: Database) -> None:
        self._col = db[CREDENTIALS]

    def insert(self, doc: CredentialDoc) -> CredentialDoc:
        with translate_errors("insert_credential"):
            result = self._col.insert_one(doc.to_mongo())
        return doc.model_copy(update={"id": result.inserted_id})

    def find_by_hash(self, secret_hash: str) -> Optional[CredentialDoc]:
        with translate_errors("find_credential_by_hash"):
            raw = self._col.find_one({"secret_hash": secret_hash})
        return CredentialDoc.from_mongo(raw)

    def find_by_id(self, credential_id: ObjectId) -> Optional[CredentialDoc]:
        with translate_errors("find_credential_by_id"):
            raw = self._col.find_one({"_id": credential_id})
        return CredentialDoc.from_mongo(raw)

    def list_by_owner(self, owner_id: str) -> list[CredentialDoc]:
        with translate_errors("list_credentials"):
            cursor = self._col.find({"owner_id": owner_id}).sort("created_at", DESCENDING)
            return CredentialDoc.from_cursor(cursor)

    def mark_revoked(self, credential_id: ObjectId) -> Optional[CredentialDoc]:
        """Set revoked=True and return the updated record, or None if absent."""
        with translate_errors("revoke_credential"):
            raw = self._col.find_one_and_update(
                {"_id": credential_id},
                {"$set": {"revoked": True}},
                return_document=ReturnDocument.AFTER,
            )
        return CredentialDoc.from_mongo(raw)

    def delete(self, credential_id: ObjectId) -> bool:
        with translate_errors("delete_credential"):
            result = self._col.delete_one({"_id": credential_id})
        return result.deleted_count == 1

    def revoke_by_owners(
        self, owner_ids: Iterable[str], session: Optional[ClientSession] = None
    ) -> int:
        """Revoke every live credential owned by any of *owner_ids*.

        Returns the number of credentials that transitioned to revoked.
        """
        owners = list(owner_ids)
        if not owners:
            return 0
        with translate_errors("revoke_credentials_by_owner", session):
            result = self._col.update_many(
                {"owner_id": {"$in": owners}, "revoked": False},
                {"$set": {"revoked": True}},
                session=session,
            )
        return result.modified_count
