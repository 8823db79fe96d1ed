"""
Cryptographic helpers: secret generation and token hashing.

Secrets are drawn from the ``secrets`` module and hashed with SHA-256 before
they reach the database. SHA-256 is deterministic and unkeyed, so the digest
doubles as the lookup key for a presented secret.
"""

from __future__ import annotations

import hashlib
import secrets


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Used for both collection tokens and principal API keys so the plaintext
    is never persisted.

    Args:
        token: The plaintext token string to hash.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_token_secret(num_bytes: int = 32) -> str:
    """Generate a fixed-length hex secret from *num_bytes* random bytes.

    The result is always ``2 * num_bytes`` characters long.
    """
    return secrets.token_hex(num_bytes)


def generate_api_key(prefix: str, num_bytes: int = 48) -> str:
    """Generate a principal API key: *prefix* followed by a hex secret."""
    return f"{prefix}{secrets.token_hex(num_bytes)}"


def is_valid_api_key_format(api_key: str, prefix: str) -> bool:
    """Cheap shape check done before hashing a presented API key."""
    return api_key.startswith(prefix) and len(api_key) >= len(prefix) + 32
