"""Password and client-secret hashing.

Hashes are self-describing strings::

    pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>

so the iteration count can be raised in configuration without
invalidating hashes already stored.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

ALGORITHM = "pbkdf2_sha256"
_SALT_BYTES = 16


class PasswordHasher:
    """Salted PBKDF2-HMAC-SHA256 hashing with constant-time verification."""

    def __init__(self, iterations: int = 600_000) -> None:
        if iterations < 1:
            msg = f"iterations must be positive, got {iterations}"
            raise ValueError(msg)
        self._iterations = iterations

    @property
    def iterations(self) -> int:
        return self._iterations

    def hash(self, plaintext: str) -> str:
        salt = secrets.token_bytes(_SALT_BYTES)
        digest = self._derive(plaintext, salt, self._iterations)
        return f"{ALGORITHM}${self._iterations}${salt.hex()}${digest.hex()}"

    def verify(self, plaintext: str | None, hashed: str | None) -> bool:
        """True if *plaintext* matches *hashed*. Malformed hashes never match."""
        if plaintext is None or not hashed:
            return False
        parts = hashed.split("$")
        if len(parts) != 4 or parts[0] != ALGORITHM:
            return False
        try:
            iterations = int(parts[1])
            salt = bytes.fromhex(parts[2])
            expected = bytes.fromhex(parts[3])
        except ValueError:
            return False
        actual = self._derive(plaintext, salt, iterations)
        return hmac.compare_digest(actual, expected)

    @staticmethod
    def is_hashed(value: str | None) -> bool:
        return bool(value) and str(value).startswith(f"{ALGORITHM}$")

    @staticmethod
    def _derive(plaintext: str, salt: bytes, iterations: int) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", plaintext.encode("utf-8"), salt, iterations)
