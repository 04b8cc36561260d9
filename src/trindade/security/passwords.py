"""Password hashing: argon2id via argon2-cffi, scrypt hashes still verifiable.

New hashes are always argon2id PHC strings. Stored ``$scrypt$`` hashes
(written by older installs or by ``hash_password(..., algo="scrypt")``)
keep verifying and report ``needs_rehash``::

    hashed = hash_password("s3cr3t")
    verify_password("s3cr3t", hashed)  # True
"""

import base64
import hashlib
import hmac
import os

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_ARGON2_PREFIX = "$argon2"
_SCRYPT_PREFIX = "$scrypt$"

_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1
_SCRYPT_DKLEN = 64
_SALT_LENGTH = 16

_hasher = PasswordHasher()


def _hash_scrypt(password: str) -> str:
    salt = os.urandom(_SALT_LENGTH)
    dk = hashlib.scrypt(
        password.encode("utf-8"), salt=salt, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P, dklen=_SCRYPT_DKLEN
    )
    salt_b64 = base64.b64encode(salt).decode("ascii")
    dk_b64 = base64.b64encode(dk).decode("ascii")
    return f"$scrypt$n={_SCRYPT_N},r={_SCRYPT_R},p={_SCRYPT_P}${salt_b64}${dk_b64}"


def _verify_scrypt(password: str, phc_hash: str) -> bool:
    # $scrypt$n=N,r=R,p=P$salt$dk
    parts = phc_hash.split("$")
    if len(parts) != 5:
        return False
    try:
        params = {k: int(v) for k, _, v in (p.partition("=") for p in parts[2].split(","))}
        salt = base64.b64decode(parts[3])
        expected = base64.b64decode(parts[4])
    except ValueError:
        return False
    dk = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=params.get("n", _SCRYPT_N),
        r=params.get("r", _SCRYPT_R),
        p=params.get("p", _SCRYPT_P),
        dklen=len(expected),
    )
    return hmac.compare_digest(dk, expected)


def hash_password(password: str, algo: str = "argon2id") -> str:
    """Hash *password* into a PHC string. ``algo`` is ``argon2id`` or ``scrypt``."""
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    if algo == "argon2id":
        return _hasher.hash(password)
    if algo == "scrypt":
        return _hash_scrypt(password)
    msg = f"Unsupported password algorithm: {algo!r}"
    raise ValueError(msg)


def verify_password(password: str, phc_hash: str) -> bool:
    """True if *password* matches *phc_hash*. Unknown formats never match."""
    if not password or not phc_hash:
        return False
    if phc_hash.startswith(_ARGON2_PREFIX):
        try:
            return _hasher.verify(phc_hash, password)
        except (VerificationError, InvalidHashError):
            return False
    if phc_hash.startswith(_SCRYPT_PREFIX):
        return _verify_scrypt(password, phc_hash)
    return False


def needs_rehash(phc_hash: str) -> bool:
    """True when *phc_hash* is not argon2id with the current parameters."""
    if not phc_hash.startswith(_ARGON2_PREFIX):
        return True
    try:
        return _hasher.check_needs_rehash(phc_hash)
    except InvalidHashError:
        return True
