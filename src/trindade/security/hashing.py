"""The ``Hash`` service: passwords plus general-purpose digests and tokens."""

from __future__ import annotations

import hashlib
import hmac as hmac_module
import secrets
import string

from trindade.security.passwords import hash_password, needs_rehash, verify_password

_ALPHABET = string.ascii_letters + string.digits


class Hash:
    """Hashing helpers exposed to handlers as ``ctx.hash``.

    ``make``/``verify``/``needs_rehash`` deal with passwords; the rest are
    thin wrappers over ``hashlib``, ``hmac`` and ``secrets``.
    """

    __slots__ = ("default_algo",)

    def __init__(self, default_algo: str = "sha256") -> None:
        if default_algo not in hashlib.algorithms_available:
            msg = f"Unknown hash algorithm: {default_algo!r}"
            raise ValueError(msg)
        self.default_algo = default_algo

    def make(self, password: str) -> str:
        return hash_password(password)

    def verify(self, password: str, hashed: str) -> bool:
        return verify_password(password, hashed)

    def needs_rehash(self, hashed: str) -> bool:
        return needs_rehash(hashed)

    def random(self, length: int = 32) -> str:
        """Random alphanumeric string of *length* characters."""
        return "".join(secrets.choice(_ALPHABET) for _ in range(length))

    def hash(self, data: str | bytes, algo: str | None = None) -> str:
        """Hex digest of *data*."""
        raw = data.encode("utf-8") if isinstance(data, str) else data
        return hashlib.new(algo or self.default_algo, raw).hexdigest()

    def hmac(self, data: str | bytes, key: str | bytes, algo: str | None = None) -> str:
        raw = data.encode("utf-8") if isinstance(data, str) else data
        secret = key.encode("utf-8") if isinstance(key, str) else key
        return hmac_module.new(secret, raw, algo or self.default_algo).hexdigest()

    def bytes(self, length: int = 32) -> bytes:
        return secrets.token_bytes(length)

    def salt(self, length: int = 16) -> str:
        """Hex salt of *length* random bytes."""
        return secrets.token_hex(length)

    def equals(self, known: str | bytes, given: str | bytes) -> bool:
        """Constant-time comparison."""
        if isinstance(known, str):
            known = known.encode("utf-8")
        if isinstance(given, str):
            given = given.encode("utf-8")
        return hmac_module.compare_digest(known, given)

    def algorithms(self) -> list[str]:
        return sorted(hashlib.algorithms_available)
