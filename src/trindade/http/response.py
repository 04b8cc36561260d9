"""HTTP responses with a chainable ``with_*`` API.

Every transformation returns a new object; nothing is mutated.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from http import HTTPStatus
from typing import Any

from trindade.http.cookies import SetCookie


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> Response:
        return replace(self, content_type=content_type)

    def with_cookie(self, cookie: SetCookie) -> Response:
        return replace(self, cookies=(*self.cookies, cookie))

    def with_cookies(self, cookies: tuple[SetCookie, ...]) -> Response:
        return replace(self, cookies=(*self.cookies, *cookies))

    def without_cookie(self, name: str, path: str = "/") -> Response:
        """Delete *name* in the browser (``Max-Age=0``)."""
        return self.with_cookie(SetCookie(name=name, value="", max_age=0, path=path))

    def header(self, name: str) -> str | None:
        """First value of header *name*, case-insensitive."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace") if isinstance(self.body, bytes) else self.body

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json_module.loads(self.body_bytes)

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def reason(self) -> str:
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return ""

    def raw_headers(self) -> list[tuple[bytes, bytes]]:
        """ASGI header list, with ``Content-Type``, ``Content-Length`` and cookies."""
        body = self.body_bytes
        raw = [
            (b"content-type", self.content_type.encode("latin-1")),
            (b"content-length", str(len(body)).encode("latin-1")),
        ]
        raw.extend((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in self.headers)
        raw.extend((b"set-cookie", c.to_header_value().encode("latin-1")) for c in self.cookies)
        return raw


def json_response(data: Any, status: int = 200) -> Response:
    body = json_module.dumps(data, ensure_ascii=False, default=str)
    return Response(body=body, status=status, content_type="application/json")


def text_response(body: str, status: int = 200) -> Response:
    return Response(body=body, status=status, content_type="text/plain; charset=utf-8")


def redirect(url: str, status: int = 302) -> Response:
    """A redirect to *url*. 302 by default."""
    return Response(body="", status=status).with_header("Location", url)
