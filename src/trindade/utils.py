"""Small helpers shared by handlers, plugins and the CLI."""

import ipaddress
import re
import secrets
import string
import unicodedata
from collections.abc import Mapping, MutableMapping
from typing import Any
from urllib.parse import urlparse

_ALPHANUMERIC = string.digits + string.ascii_letters
_EMAIL_RE = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)
_UNITS = ("B", "KB", "MB", "GB", "TB")


def random_string(length: int = 32, chars: str = _ALPHANUMERIC) -> str:
    return "".join(secrets.choice(chars) for _ in range(length))


def token(length: int = 32) -> str:
    """Hex token built from *length* random bytes (so ``2 * length`` chars)."""
    return secrets.token_hex(length)


def slug(text: str, separator: str = "-") -> str:
    """ASCII slug: ``"Olá Mundo!"`` -> ``"ola-mundo"``."""
    text = unicodedata.normalize("NFKD", text.lower())
    text = text.encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^-\w\s]+", "", text)
    text = re.sub(r"[-\s]+", separator, text)
    return text.strip(separator)


def truncate(text: str, length: int = 100, suffix: str = "...") -> str:
    if len(text) <= length:
        return text
    return text[:length].rstrip() + suffix


def format_file_size(size: int, precision: int = 2) -> str:
    """Human-readable size in powers of 1024: ``1536`` -> ``"1.5 KB"``."""
    amount = float(max(size, 0))
    power = 0
    while amount >= 1024 and power < len(_UNITS) - 1:
        amount /= 1024
        power += 1
    value = f"{amount:.{precision}f}"
    if "." in value:
        value = value.rstrip("0").rstrip(".")
    return f"{value} {_UNITS[power]}"


def is_valid_email(value: str) -> bool:
    return len(value) <= 254 and _EMAIL_RE.match(value) is not None


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https", "ftp") and bool(parsed.netloc)


def is_valid_ip(value: str, version: int | None = None) -> bool:
    """True for an IPv4/IPv6 address; *version* restricts to 4 or 6."""
    try:
        address = ipaddress.ip_address(value.strip())
    except ValueError:
        return False
    return version is None or address.version == version


def client_ip(request: Any) -> str | None:
    """Client address from ``Client-IP``, ``X-Forwarded-For`` or the socket peer.

    Only the first forwarded hop is considered, and only if it parses
    as an IP address.
    """
    headers = request.headers
    candidates = [
        headers.get("client-ip"),
        (headers.get("x-forwarded-for") or "").split(",")[0].strip() or None,
        request.client[0] if request.client else None,
    ]
    for candidate in candidates:
        if candidate:
            return candidate if is_valid_ip(candidate) else None
    return None


def array_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Read a nested value with a dotted key: ``array_get(d, "db.host")``."""
    if key in data:
        return data[key]
    current: Any = data
    for segment in key.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return default
        current = current[segment]
    return current


def array_set(data: MutableMapping[str, Any], key: str, value: Any) -> MutableMapping[str, Any]:
    """Set a nested value with a dotted key, creating intermediate dicts."""
    *parents, last = key.split(".")
    current = data
    for segment in parents:
        child = current.get(segment)
        if not isinstance(child, MutableMapping):
            child = {}
            current[segment] = child
        current = child
    current[last] = value
    return data


def array_forget(data: MutableMapping[str, Any], key: str) -> None:
    """Remove a nested value addressed by a dotted key, if present."""
    *parents, last = key.split(".")
    current: Any = data
    for segment in parents:
        if not isinstance(current, MutableMapping) or segment not in current:
            return
        current = current[segment]
    if isinstance(current, MutableMapping):
        current.pop(last, None)
