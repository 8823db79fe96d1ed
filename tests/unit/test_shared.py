"""
Unit tests for the shared/ utility modules.

Covers:
- shared.crypto          (hash_token, generate_token_secret, generate_api_key,
                          is_valid_api_key_format)
- shared.datetime_utils  (ensure_utc, parse_datetime, to_timestamp)
- shared.validators      (parse_object_id, validate_permission_name,
                          validate_owner_id)
"""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from errors import ValidationError
from shared.crypto import (
    generate_api_key,
    generate_token_secret,
    hash_token,
    is_valid_api_key_format,
)
from shared.datetime_utils import ensure_utc, parse_datetime, to_timestamp
from shared.validators import (
    parse_object_id,
    validate_owner_id,
    validate_permission_name,
)


# ---------------------------------------------------------------------------
# shared.crypto
# ---------------------------------------------------------------------------


class TestHashToken:
    def test_matches_sha256_hex(self):
        assert hash_token("abc") == hashlib.sha256(b"abc").hexdigest()

    def test_deterministic(self):
        assert hash_token("secret") == hash_token("secret")

    def test_distinct_inputs_distinct_digests(self):
        assert hash_token("a") != hash_token("b")

    def test_length_is_64(self):
        assert len(hash_token("anything")) == 64


class TestGenerateTokenSecret:
    def test_default_is_64_hex_chars(self):
        secret = generate_token_secret()
        assert re.fullmatch(r"[0-9a-f]{64}", secret)

    @pytest.mark.parametrize("num_bytes", [32, 40, 64])
    def test_length_tracks_bytes(self, num_bytes):
        assert len(generate_token_secret(num_bytes)) == num_bytes * 2

    def test_unique(self):
        assert len({generate_token_secret() for _ in range(50)}) == 50


class TestGenerateApiKey:
    def test_has_prefix(self):
        assert generate_api_key("kw_").startswith("kw_")

    def test_default_length(self):
        assert len(generate_api_key("kw_")) == len("kw_") + 96

    def test_passes_format_check(self):
        assert is_valid_api_key_format(generate_api_key("kw_"), "kw_")


@pytest.mark.parametrize(
    "key, expected",
    [
        ("kw_" + "a" * 32, True),
        ("kw_" + "a" * 31, False),
        ("xx_" + "a" * 64, False),
        ("", False),
    ],
)
def test_is_valid_api_key_format(key, expected):
    assert is_valid_api_key_format(key, "kw_") is expected


# ---------------------------------------------------------------------------
# shared.datetime_utils
# ---------------------------------------------------------------------------


class TestEnsureUtc:
    def test_none(self):
        assert ensure_utc(None) is None

    def test_naive_assumed_utc(self):
        result = ensure_utc(datetime(2024, 1, 1, 12, 0))
        assert result.tzinfo == timezone.utc
        assert result.hour == 12

    def test_aware_converted(self):
        plus_two = timezone(timedelta(hours=2))
        result = ensure_utc(datetime(2024, 1, 1, 12, 0, tzinfo=plus_two))
        assert result.hour == 10
        assert result.tzinfo == timezone.utc


class TestParseDatetime:
    def test_none(self):
        assert parse_datetime(None) is None

    def test_iso_with_z(self):
        result = parse_datetime("2024-05-01T10:00:00Z")
        assert result == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        assert parse_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_datetime_passthrough(self):
        dt = datetime(2024, 5, 1, 10, 0)
        assert parse_datetime(dt) == dt.replace(tzinfo=timezone.utc)

    @pytest.mark.parametrize("bad", ["not a date", "2024-13-45"])
    def test_unparseable_returns_none(self, bad):
        assert parse_datetime(bad) is None


class TestToTimestamp:
    def test_none(self):
        assert to_timestamp(None) is None

    def test_epoch(self):
        assert to_timestamp(datetime(1970, 1, 2, tzinfo=timezone.utc)) == 86400

    def test_naive_treated_as_utc(self):
        assert to_timestamp(datetime(1970, 1, 2)) == 86400


# ---------------------------------------------------------------------------
# shared.validators
# ---------------------------------------------------------------------------


class TestParseObjectId:
    def test_accepts_object_id(self):
        oid = ObjectId()
        assert parse_object_id(oid) is oid

    def test_accepts_hex_string(self):
        oid = ObjectId()
        assert parse_object_id(str(oid)) == oid

    @pytest.mark.parametrize("bad", ["nope", "", None, 123])
    def test_rejects_invalid(self, bad):
        with pytest.raises(ValidationError) as exc:
            parse_object_id(bad, "user_id")
        assert exc.value.field == "user_id"


class TestValidatePermissionName:
    @pytest.mark.parametrize(
        "name", ["read", "CREATE_USER", "mcp:add", "docs.read", "a-b"]
    )
    def test_valid(self, name):
        assert validate_permission_name(name) == name

    @pytest.mark.parametrize(
        "name", ["", "1read", "has space", "x" * 65, None, "semi;colon"]
    )
    def test_invalid(self, name):
        with pytest.raises(ValidationError):
            validate_permission_name(name)


class TestValidateOwnerId:
    def test_strips(self):
        assert validate_owner_id("  col-1 ") == "col-1"

    @pytest.mark.parametrize("bad", ["", "   ", None])
    def test_rejects_blank(self, bad):
        with pytest.raises(ValidationError) as exc:
            validate_owner_id(bad)
        assert exc.value.field == "owner_id"
