"""Tests for trindade.security.Hash, the ``ctx.hash`` service."""

import hashlib
import hmac

import pytest

from trindade.security import Hash


class TestHash:
    def test_passwords(self) -> None:
        h = Hash()
        hashed = h.make("secret-pass")
        assert h.verify("secret-pass", hashed)
        assert not h.needs_rehash(hashed)

    def test_digest(self) -> None:
        assert Hash().hash("abc") == hashlib.sha256(b"abc").hexdigest()
        assert Hash().hash(b"abc", "md5") == hashlib.md5(b"abc").hexdigest()  # noqa: S324

    def test_hmac(self) -> None:
        expected = hmac.new(b"key", b"data", "sha256").hexdigest()
        assert Hash().hmac("data", "key") == expected

    def test_random(self) -> None:
        value = Hash().random(20)
        assert len(value) == 20
        assert value.isalnum()

    def test_bytes_and_salt(self) -> None:
        h = Hash()
        assert len(h.bytes(8)) == 8
        assert len(h.salt(8)) == 16

    def test_equals(self) -> None:
        h = Hash()
        assert h.equals("abc", b"abc")
        assert not h.equals("abc", "abd")

    def test_algorithms(self) -> None:
        assert "sha256" in Hash().algorithms()

    def test_unknown_default(self) -> None:
        with pytest.raises(ValueError, match="Unknown hash algorithm"):
            Hash("nope")
