"""Immutable HTTP request.

The body is read in full before the request is built, so everything a
handler needs is available synchronously.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from trindade.http.cookies import parse_cookies
from trindade.http.forms import FormData, UploadFile, parse_form
from trindade.http.headers import Headers
from trindade.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """A received HTTP request.

    ``path`` is the raw request path as sent; the router normalizes it
    on its own when matching.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    body: bytes = b""
    cookies: dict[str, str] = field(default_factory=dict)
    client: tuple[str, int] | None = None
    scheme: str = "http"

    # Parsed form, filled on first access
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], body: bytes = b"") -> Request:
        """Build a request from an ASGI HTTP scope and its complete body."""
        headers = Headers.from_asgi(scope.get("headers", ()))
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope.get("path") or "/",
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            body=body,
            cookies=parse_cookies(headers.get("cookie")),
            client=tuple(client) if client else None,  # type: ignore[arg-type]
            scheme=scope.get("scheme", "http"),
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        qs = str(self.query)
        return f"{self.path}?{qs}" if qs else self.path

    @property
    def is_json(self) -> bool:
        return (self.content_type or "").split(";", 1)[0].strip().lower() == "application/json"

    @property
    def form(self) -> FormData:
        """URL-encoded or multipart body fields. Parsed once."""
        if "form" not in self._cache:
            self._cache["form"] = parse_form(self.body, self.content_type)
        return self._cache["form"]

    @property
    def files(self) -> dict[str, UploadFile]:
        return dict(self.form.files)

    def json(self) -> Any:
        """Decode the body as JSON. Raises ``ValueError`` on bad input."""
        return json.loads(self.body or b"null")

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")
