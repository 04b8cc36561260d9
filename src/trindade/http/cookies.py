"""Cookie parsing, ``Set-Cookie`` serialization and the per-request jar."""

import time
from collections.abc import Mapping
from dataclasses import dataclass
from email.utils import formatdate
from urllib.parse import quote, unquote


def parse_cookies(header: str | None) -> dict[str, str]:
    """Parse a ``Cookie`` request header into a name -> value dict.

    Values are URL-decoded. Malformed pairs are skipped.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        name, sep, value = pair.strip().partition("=")
        if sep and name:
            cookies[name.strip()] = unquote(value.strip().strip('"'))
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """One ``Set-Cookie`` directive.

    ``max_age=0`` together with an empty value deletes the cookie.
    """

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str | None = "lax"

    def to_header_value(self, now: float | None = None) -> str:
        parts = [f"{self.name}={quote(self.value, safe='')}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
            parts.append(f"Expires={_expires(self.max_age, now)}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite.capitalize()}")
        return "; ".join(parts)


def _expires(max_age: int, now: float | None) -> str:
    base = time.time() if now is None else now
    return formatdate(base + max_age if max_age > 0 else 0, usegmt=True)


class CookieJar:
    """Request cookies plus the cookies queued for the response.

    Reads see queued changes, so a cookie set earlier in the same
    request is visible to later ``get`` calls::

        ctx.cookies.set("theme", "dark", expires=86400)
        ctx.cookies.get("theme")  # "dark"
        ctx.cookies.remove("theme")
    """

    __slots__ = ("_incoming", "_outgoing", "defaults")

    def __init__(self, incoming: Mapping[str, str] | None = None, **defaults: object) -> None:
        self._incoming = dict(incoming or {})
        self._outgoing: dict[str, SetCookie] = {}
        self.defaults = defaults

    def get(self, name: str, default: str | None = None) -> str | None:
        queued = self._outgoing.get(name)
        if queued is not None:
            return None if queued.max_age == 0 else queued.value
        return self._incoming.get(name, default)

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def set(
        self,
        name: str,
        value: str,
        expires: int = 3600,
        *,
        path: str = "/",
        domain: str | None = None,
        secure: bool | None = None,
        httponly: bool | None = None,
        samesite: str | None = "lax",
    ) -> SetCookie:
        """Queue a cookie that lives for *expires* seconds."""
        cookie = SetCookie(
            name=name,
            value=value,
            max_age=expires,
            path=path,
            domain=domain if domain is not None else self.defaults.get("domain"),  # type: ignore[arg-type]
            secure=bool(self.defaults.get("secure", False)) if secure is None else secure,
            httponly=bool(self.defaults.get("httponly", True)) if httponly is None else httponly,
            samesite=samesite,
        )
        self._outgoing[name] = cookie
        return cookie

    def remove(self, name: str, path: str = "/") -> None:
        """Queue deletion of *name* in the browser."""
        self._outgoing[name] = SetCookie(name=name, value="", max_age=0, path=path)

    def all(self) -> dict[str, str]:
        merged = dict(self._incoming)
        for name, cookie in self._outgoing.items():
            if cookie.max_age == 0:
                merged.pop(name, None)
            else:
                merged[name] = cookie.value
        return merged

    @property
    def pending(self) -> tuple[SetCookie, ...]:
        """Cookies to emit as ``Set-Cookie`` headers, in the order set."""
        return tuple(self._outgoing.values())
