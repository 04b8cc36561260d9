"""Map handler failures to error responses.

``HTTPError`` raised by a handler becomes a response with its status;
anything else becomes a 500, with a traceback page in debug mode.
"""

import html
import logging
import traceback
from typing import Any

from trindade.errors import HTTPError
from trindade.http.request import Request
from trindade.http.response import Response

logger = logging.getLogger("trindade.server")


def render_error_view(templates: Any, status: int, message: str) -> Response:
    """Render ``errors/<status>`` when it exists, plain text otherwise."""
    view = f"errors/{status}"
    if templates is not None and templates.exists(view):
        return Response(body=templates.render(view, {"status": status, "message": message}), status=status)
    return Response(body=message, status=status, content_type="text/plain; charset=utf-8")


def handle_http_error(exc: HTTPError, request: Request, templates: Any) -> Response:
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    response = render_error_view(templates, exc.status, exc.detail or f"Error {exc.status}")
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(exc: Exception, request: Request, templates: Any, debug: bool) -> Response:
    """Log *exc* with its traceback and build the 500 response."""
    logger.exception(
        "500 %s %s",
        request.method,
        request.path,
        extra={"context": {"error": type(exc).__name__}},
    )
    if debug:
        return Response(body=render_debug_page(exc, request), status=500)
    try:
        return render_error_view(templates, 500, "Internal Server Error")
    except Exception:
        logger.exception("Error view failed to render")
        return Response(body="Internal Server Error", status=500, content_type="text/plain; charset=utf-8")


def render_debug_page(exc: BaseException, request: Request) -> str:
    """Self-contained HTML page with the exception and its traceback."""
    trace = "".join(traceback.format_exception(exc))
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{html.escape(type(exc).__name__)}</title></head><body>"
        f"<h1>{html.escape(type(exc).__name__)}: {html.escape(str(exc))}</h1>"
        f"<p>{html.escape(request.method)} {html.escape(request.url)}</p>"
        f"<pre>{html.escape(trace)}</pre>"
        "</body></html>"
    )
