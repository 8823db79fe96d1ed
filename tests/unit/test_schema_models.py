"""Unit tests for MongoDB document models (schemas/models/)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError

from schemas.models.base import MongoBaseModel, PyObjectId
from schemas.models.credential import CredentialDoc
from schemas.models.global_settings import GLOBAL_SETTINGS_ID, GlobalSettingsDoc
from schemas.models.principal import (
    PERMISSION_DESCRIPTIONS,
    PermissionType,
    PrincipalDoc,
)


def oid() -> ObjectId:
    return ObjectId()


NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


# ── PyObjectId / MongoBaseModel ──────────────────────────────────────────────


class TestPyObjectId:
    def test_accepts_string(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": str(o)})
        assert m.id == o

    def test_rejects_garbage(self):
        with pytest.raises(ValidationError):
            MongoBaseModel.model_validate({"_id": "not-an-id"})

    def test_json_serializes_as_string(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": o})
        assert m.model_dump(mode="json", by_alias=True)["_id"] == str(o)

    def test_is_object_id_subclass(self):
        assert issubclass(PyObjectId, ObjectId)


class TestMongoBaseModel:
    def test_to_mongo_drops_none_id(self):
        assert "_id" not in MongoBaseModel().to_mongo()

    def test_to_mongo_keeps_set_id(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": o})
        assert m.to_mongo()["_id"] == o

    def test_from_mongo_none(self):
        assert MongoBaseModel.from_mongo(None) is None


# ── CredentialDoc ────────────────────────────────────────────────────────────


class TestCredentialDoc:
    def _make(self, **overrides) -> CredentialDoc:
        base = {"owner_id": "collection-1", "secret_hash": "a" * 64, "created_at": NOW}
        base.update(overrides)
        return CredentialDoc(**base)

    def test_defaults(self):
        doc = self._make()
        assert doc.revoked is False
        assert doc.expires_at is None
        assert doc.name is None

    def test_valid_without_expiry(self):
        assert self._make().is_valid(NOW) is True

    def test_revoked_is_invalid(self):
        assert self._make(revoked=True).is_valid(NOW) is False

    def test_past_expiry_is_invalid_even_if_not_revoked(self):
        doc = self._make(expires_at=NOW - timedelta(seconds=1))
        assert doc.revoked is False
        assert doc.is_valid(NOW) is False

    def test_expiry_equal_to_now_is_invalid(self):
        assert self._make(expires_at=NOW).is_valid(NOW) is False

    def test_future_expiry_is_valid(self):
        assert self._make(expires_at=NOW + timedelta(days=1)).is_valid(NOW) is True

    def test_naive_expiry_treated_as_utc(self):
        naive = (NOW + timedelta(hours=1)).replace(tzinfo=None)
        assert self._make(expires_at=naive).is_valid(NOW) is True

    def test_naive_now_treated_as_utc(self):
        naive_now = NOW.replace(tzinfo=None)
        assert self._make(expires_at=NOW + timedelta(minutes=1)).is_valid(naive_now) is True
        assert self._make(expires_at=NOW - timedelta(minutes=1)).is_valid(naive_now) is False

    def test_to_mongo_has_no_plaintext_field(self):
        data = self._make().to_mongo()
        assert "secret" not in data
        assert data["secret_hash"] == "a" * 64


# ── PrincipalDoc ─────────────────────────────────────────────────────────────


class TestPrincipalDoc:
    def _make(self, **overrides) -> PrincipalDoc:
        base = {"name": "alice", "contact": "alice@example.com", "key_hash": "b" * 64}
        base.update(overrides)
        return PrincipalDoc(**base)

    def test_defaults(self):
        doc = self._make()
        assert doc.is_admin is False
        assert doc.permissions == []
        assert doc.created_by is None
        assert doc.is_revoked is False

    def test_is_revoked(self):
        assert self._make(revoked_at=NOW).is_revoked is True

    def test_has_permission(self):
        doc = self._make(permissions=["read"])
        assert doc.has_permission("read") is True
        assert doc.has_permission("write") is False

    def test_admin_has_every_permission(self):
        assert self._make(is_admin=True).has_permission("anything") is True

    def test_created_by_kept_as_object_id_in_mongo_dict(self):
        parent = oid()
        data = self._make(created_by=str(parent)).to_mongo()
        assert data["created_by"] == parent
        assert isinstance(data["created_by"], ObjectId)


class TestPermissionType:
    def test_every_permission_described(self):
        assert set(PERMISSION_DESCRIPTIONS) == {p.value for p in PermissionType}

    def test_str_enum(self):
        assert PermissionType("CREATE_USER") is PermissionType.CREATE_USER
        assert PermissionType.LIST_USERS == "LIST_USERS"


# ── GlobalSettingsDoc ────────────────────────────────────────────────────────


class TestGlobalSettingsDoc:
    def test_defaults(self):
        doc = GlobalSettingsDoc()
        assert doc.id == GLOBAL_SETTINGS_ID
        assert doc.allow_self_service_registration is False
        assert doc.default_self_service_permissions == []

    def test_reads_mongo_document(self):
        doc = GlobalSettingsDoc.model_validate(
            {
                "_id": "global",
                "allow_self_service_registration": True,
                "default_self_service_permissions": ["read"],
            }
        )
        assert doc.allow_self_service_registration is True
        assert doc.default_self_service_permissions == ["read"]

    def test_defaults_payload_excludes_id(self):
        assert "_id" not in GlobalSettingsDoc.defaults()


def test_from_cursor_builds_typed_docs():
    raws = [
        {"_id": oid(), "owner_id": "c", "secret_hash": "1" * 64},
        {"_id": oid(), "owner_id": "c", "secret_hash": "2" * 64},
    ]
    docs = CredentialDoc.from_cursor(iter(raws))
    assert [d.id for d in docs] == [r["_id"] for r in raws]
    assert all(isinstance(d, CredentialDoc) for d in docs)
