"""
Global settings document model.

Maps to the `settings` MongoDB collection, which only ever holds the single
document keyed "global".
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

GLOBAL_SETTINGS_ID = "global"


class GlobalSettingsDoc(BaseModel):
    """Singleton settings document. Uses a fixed string _id, not an ObjectId."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default=GLOBAL_SETTINGS_ID, alias="_id")
    allow_self_service_registration: bool = False
    default_self_service_permissions: list[str] = []
    updated_at: Optional[datetime] = None

    @classmethod
    def defaults(cls) -> dict:
        """Field values written when the singleton is first materialised."""
        return {
            "allow_self_service_registration": False,
            "default_self_service_permissions": [],
        }
