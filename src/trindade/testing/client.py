"""Async test client that drives an app through its ASGI interface.

Cookies set by responses are stored and sent back on later requests,
so session flows (login, flash messages) work across calls.
"""

from __future__ import annotations

import json as json_module
from typing import Any
from urllib.parse import quote, urlencode

from trindade.app import App
from trindade.http.cookies import parse_cookies
from trindade.http.response import Response


class TestClient:
    __test__ = False  # not a pytest test class
    """Async test client.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
    """

    __slots__ = ("app", "cookies")

    def __init__(self, app: App) -> None:
        self.app = app
        self.cookies: dict[str, str] = {}

    async def __aenter__(self) -> TestClient:
        await self.app.startup()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.app.shutdown()

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("GET", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        data: dict[str, str] | None = None,
        json: Any = None,
    ) -> Response:
        return await self.request("POST", path, headers=headers, body=body, data=data, json=json)

    async def put(self, path: str, *, headers: dict[str, str] | None = None, body: bytes | None = None) -> Response:
        return await self.request("PUT", path, headers=headers, body=body)

    async def patch(self, path: str, *, headers: dict[str, str] | None = None, body: bytes | None = None) -> Response:
        return await self.request("PATCH", path, headers=headers, body=body)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("DELETE", path, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        data: dict[str, str] | None = None,
        json: Any = None,
    ) -> Response:
        """Send one request and collect the response."""
        path_part, _, query_string = path.partition("?")
        merged: dict[str, str] = {}
        if data is not None:
            body = urlencode(data).encode("utf-8")
            merged["content-type"] = "application/x-www-form-urlencoded"
        elif json is not None:
            body = json_module.dumps(json).encode("utf-8")
            merged["content-type"] = "application/json"
        if self.cookies:
            merged["cookie"] = "; ".join(f"{k}={quote(v, safe='')}" for k, v in self.cookies.items())
        merged.update({k.lower(): v for k, v in (headers or {}).items()})

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "scheme": "http",
            "path": path_part,
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": [(k.encode("latin-1"), v.encode("latin-1")) for k, v in merged.items()],
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        status = 200
        raw_headers: list[tuple[bytes, bytes]] = []
        parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal status, raw_headers
            if message["type"] == "http.response.start":
                status = message["status"]
                raw_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                parts.append(message.get("body", b""))

        await self.app(scope, receive, send)

        content_type = "text/html; charset=utf-8"
        extra: list[tuple[str, str]] = []
        for name_b, value_b in raw_headers:
            name, value = name_b.decode("latin-1"), value_b.decode("latin-1")
            if name == "content-type":
                content_type = value
            elif name != "content-length":
                extra.append((name, value))
                if name == "set-cookie":
                    self._store_cookie(value)

        return Response(body=b"".join(parts), status=status, content_type=content_type, headers=tuple(extra))

    def _store_cookie(self, header: str) -> None:
        pair, _, attributes = header.partition(";")
        for name, value in parse_cookies(pair).items():
            if "max-age=0" in attributes.lower().replace(" ", ""):
                self.cookies.pop(name, None)
            else:
                self.cookies[name] = value
