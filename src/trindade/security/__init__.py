"""Password hashing and the ``Hash`` helper service."""

from trindade.security.hashing import Hash
from trindade.security.passwords import hash_password, needs_rehash, verify_password

__all__ = ["Hash", "hash_password", "needs_rehash", "verify_password"]
