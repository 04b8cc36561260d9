"""Translate between ASGI messages and trindade Request/Response objects."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from trindade.http.response import Response

logger = logging.getLogger("trindade.server")

Receive = Callable[[], Awaitable[dict[str, Any]]]
Send = Callable[[dict[str, Any]], Awaitable[None]]


def _body_allowed(status: int) -> bool:
    # 1xx, 204 and 304 carry no body
    return not (100 <= status < 200 or status in {204, 304})


async def read_body(receive: Receive) -> bytes:
    """Drain ``http.request`` messages into one bytes object."""
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Send *response* as ``http.response.start`` plus one body message."""
    if not _body_allowed(response.status):
        response = Response(
            body=b"",
            status=response.status,
            content_type=response.content_type,
            headers=response.headers,
            cookies=response.cookies,
        )
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": response.raw_headers(),
        }
    )
    await send({"type": "http.response.body", "body": b"" if head else response.body_bytes})
