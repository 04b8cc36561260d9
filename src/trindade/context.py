"""Per-request context handed to every route and not-found handler.

A handler receives the context first and its path captures after it::

    @app.on("GET /users/:id")
    def show_user(ctx: Context, user_id: str):
        user = ctx.db.get("users", {"id": int(user_id)})
        if user is None:
            raise NotFound("No such user")
        return ctx.view("users/show", {"user": user})

The response helpers (``view``, ``text``, ``json``, ``redirect``) return a
``Response`` and also remember it as ``ctx.response``, so a handler may
either return it or just call the helper.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from trindade.errors import HTTPError
from trindade.http.cookies import CookieJar
from trindade.http.forms import UploadFile
from trindade.http.request import Request
from trindade.http.response import Response, json_response, redirect, text_response
from trindade.session import Session

if TYPE_CHECKING:
    from trindade.app import App
    from trindade.assets import Assets
    from trindade.cache import Cache
    from trindade.config import AppConfig
    from trindade.data import Database
    from trindade.files import FileStorage
    from trindade.lang import Lang
    from trindade.mail import Mail
    from trindade.security import Hash
    from trindade.templating import Templates


class Context:
    __slots__ = ("_headers", "_lang", "_status", "app", "cookies", "request", "response", "session")

    def __init__(self, app: App, request: Request, session: Session, cookies: CookieJar) -> None:
        self.app = app
        self.request = request
        self.session = session
        self.cookies = cookies
        self.response: Response | None = None
        self._headers: list[tuple[str, str]] = []
        self._status: int | None = None
        self._lang: Lang | None = None

    def __repr__(self) -> str:
        return f"<Context {self.request.method} {self.request.path}>"

    # -- Services --

    @property
    def config(self) -> AppConfig:
        return self.app.config

    @property
    def cache(self) -> Cache:
        return self.app.cache

    @property
    def db(self) -> Database:
        return self.app.db

    @property
    def mail(self) -> Mail:
        return self.app.mail

    @property
    def hash(self) -> Hash:
        return self.app.hash

    @property
    def files(self) -> FileStorage:
        return self.app.files

    @property
    def assets(self) -> Assets:
        return self.app.assets

    @property
    def lang(self) -> Lang:
        """This request's translations; ``set_locale`` here affects no other request."""
        if self._lang is None:
            self._lang = self.app.lang.for_locale()
        return self._lang

    @property
    def templates(self) -> Templates:
        return self.app.templates

    @property
    def log(self) -> logging.Logger:
        return logging.getLogger("trindade.app")

    # -- Input --

    def get(self, key: str, default: Any = None) -> Any:
        """Query string value."""
        return self.request.query.get(key, default)

    def post(self, key: str, default: Any = None) -> Any:
        """Form body value."""
        return self.request.form.get(key, default)

    def input(self, key: str, default: Any = None) -> Any:
        """Form, then JSON body, then query string."""
        form = self.request.form
        if key in form:
            return form[key]
        if self.request.is_json:
            try:
                data = self.request.json()
            except ValueError:
                data = None
            if isinstance(data, Mapping) and key in data:
                return data[key]
        return self.request.query.get(key, default)

    def all(self) -> dict[str, Any]:
        """Query and form values merged, form winning."""
        return {**dict(self.request.query), **dict(self.request.form)}

    def file(self, name: str) -> UploadFile | None:
        return self.request.form.files.get(name)

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.request.headers.get(name, default)

    # -- Output --

    def _remember(self, response: Response) -> Response:
        self.response = response
        return response

    def view(self, name: str, data: Mapping[str, Any] | None = None, status: int = 200) -> Response:
        """Render view *name* (``"blog/index"``) with *data*."""
        body = self.app.templates.render(name, self.view_data(data))
        return self._remember(Response(body=body, status=status))

    def view_data(self, data: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Variables every view sees, overridden by *data*."""
        return {
            "request": self.request,
            "session": self.session,
            "csrf_token": self.session.generate_csrf_token(),
            "assets": self.app.assets,
            "lang": self.lang,
            "config": self.app.config,
            **(data or {}),
        }

    def text(self, body: str, status: int = 200) -> Response:
        return self._remember(text_response(body, status))

    def json(self, data: Any, status: int = 200) -> Response:
        return self._remember(json_response(data, status))

    def redirect(self, url: str, status: int = 302) -> Response:
        return self._remember(redirect(url, status))

    def set_header(self, name: str, value: str) -> None:
        """Add a header to whatever response this request ends with."""
        self._headers.append((name, value))

    def status(self, code: int) -> None:
        """Status for the final response when the handler does not set one."""
        self._status = code

    def abort(self, status: int, detail: str = "") -> None:
        raise HTTPError(status=status, detail=detail)

    def finalize(self, response: Response) -> Response:
        """Apply queued status, headers and cookies to *response*."""
        if self._status is not None and response.status == 200:
            response = response.with_status(self._status)
        for name, value in self._headers:
            response = response.with_header(name, value)
        return response.with_cookies(self.cookies.pending)
