"""
Global settings store: the singleton document in the `settings` collection.

Default materialisation is a single upsert with $setOnInsert on the fixed
"global" key, so two first reads racing each other cannot create two
documents: the loser either matches the winner's insert or gets a
DuplicateKeyError on _id and re-reads.
"""

from __future__ import annotations

from pymongo import ReturnDocument
from pymongo.database import Database

from errors import ConflictError
from infrastructure.mongo import SETTINGS, translate_errors
from schemas.models.global_settings import GLOBAL_SETTINGS_ID, GlobalSettingsDoc
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)


class GlobalSettingsStore:
    def __init__(self, db: Database) -> None:
        self._col = db[SETTINGS]

    def get(self) -> GlobalSettingsDoc:
        """Return the singleton, creating it with defaults if absent."""
        try:
            with translate_errors("get_global_settings"):
                raw = self._col.find_one_and_update(
                    {"_id": GLOBAL_SETTINGS_ID},
                    {"$setOnInsert": GlobalSettingsDoc.defaults()},
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
        except ConflictError:
            raw = None
        if raw is None:
            # Lost an upsert race on _id; the winner's document is there now.
            with translate_errors("get_global_settings"):
                raw = self._col.find_one({"_id": GLOBAL_SETTINGS_ID})
        return GlobalSettingsDoc.model_validate(raw)

    def update_self_service(
        self, enabled: bool, default_permissions: list[str]
    ) -> GlobalSettingsDoc:
        permissions = list(dict.fromkeys(default_permissions))
        with translate_errors("update_global_settings"):
            raw = self._col.find_one_and_update(
                {"_id": GLOBAL_SETTINGS_ID},
                {
                    "$set": {
                        "allow_self_service_registration": enabled,
                        "default_self_service_permissions": permissions,
                        "updated_at": utcnow(),
                    }
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        log.info(
            "global_settings_updated",
            allow_self_service_registration=enabled,
            default_permissions=permissions,
        )
        return GlobalSettingsDoc.model_validate(raw)
