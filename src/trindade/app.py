"""The trindade application: route registration, services and the ASGI entry.

Routes are not stored on the app. The app keeps an ordered list of
*registrars* (callables taking a ``Router``) and replays them into a
fresh ``Router`` for every request, so no routing state is shared
between requests::

    app = App(AppConfig(secret_key="s3cr3t"))

    @app.on("GET /")
    def home(ctx):
        return ctx.view("home", {"title": "Trindade"})

    def api(router):
        router.on("GET /ping", lambda ctx: {"pong": True})

    app.group("/api", api, not_found=lambda ctx: ctx.json({"error": "Not Found"}, 404))
"""

from __future__ import annotations

import inspect
import logging
import secrets
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio

from trindade.config import AppConfig, load_config
from trindade.context import Context
from trindade.errors import HTTPError
from trindade.http.cookies import CookieJar
from trindade.http.request import Request
from trindade.http.response import Response, json_response
from trindade.routing import Router
from trindade.server.errors import handle_http_error, handle_internal_error, render_error_view
from trindade.server.sender import Receive, Send, read_body, send_response
from trindade.session import SessionStore

if TYPE_CHECKING:
    from trindade.assets import Assets
    from trindade.cache import Cache
    from trindade.data import Database
    from trindade.files import FileStorage
    from trindade.lang import Lang
    from trindade.mail import Mail
    from trindade.plugins import Plugin
    from trindade.security import Hash
    from trindade.templating import Templates

logger = logging.getLogger("trindade.server")

Registrar = Callable[[Router], Any]
Handler = Callable[..., Any]


class App:
    """The application object and ASGI callable."""

    def __init__(self, config: AppConfig | None = None, *, config_file: str | Path | None = None) -> None:
        if config is None:
            config = load_config(config_file) if config_file is not None else AppConfig()
        if not config.secret_key:
            logger.warning("No secret_key configured; sessions will not survive a restart")
        self.config = config
        self._registrars: list[Registrar] = []
        self._plugins: dict[str, Plugin] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._sessions = SessionStore(config.session, config.secret_key or secrets.token_hex(32))
        self._services: dict[str, Any] = {}
        self._services_lock = threading.RLock()
        self._template_packages: list[tuple[str, str]] = []

    # -- Registration --

    def on(self, spec: str, handler: Handler | None = None) -> Any:
        """Queue a route. Usable directly or as a decorator::

            app.on("GET /", home)

            @app.on("POST /users")
            def create_user(ctx): ...
        """
        if handler is not None:
            self._registrars.append(lambda router: router.on(spec, handler))
            return handler

        def decorator(func: Handler) -> Handler:
            self._registrars.append(lambda router: router.on(spec, func))
            return func

        return decorator

    def group(self, prefix: str, callback: Registrar, not_found: Handler | None = None) -> None:
        """Queue a prefix group; *callback* receives the per-request router."""
        self._registrars.append(lambda router: router.group(prefix, callback, not_found))

    def register(self, registrar: Registrar) -> Registrar:
        """Queue an arbitrary ``registrar(router)``. Returns it, so it decorates."""
        self._registrars.append(registrar)
        return registrar

    def not_found(self, handler: Handler) -> Handler:
        """Handler for unmatched paths outside any group with its own."""
        self._registrars.append(lambda router: router.group("", _noop, handler))
        return handler

    def plugin(self, plugin: Plugin) -> Plugin:
        """Install *plugin*: queue its routes, expose its templates, boot it."""
        if plugin.name in self._plugins:
            msg = f"Plugin {plugin.name!r} is already installed"
            raise ValueError(msg)
        self._plugins[plugin.name] = plugin
        self._registrars.append(plugin.register)
        package = plugin.template_package()
        if package is not None:
            self._template_packages.append(package)
            if "templates" in self._services:
                self._services["templates"].add_package(*package)
        plugin.boot(self)
        logger.debug("Installed plugin %s", plugin.name)
        return plugin

    @property
    def plugins(self) -> dict[str, Plugin]:
        return dict(self._plugins)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        self._shutdown_hooks.append(func)
        return func

    def build_router(self, context: Any = None) -> Router:
        """A fresh router with every registrar replayed, in order."""
        router = Router(context=context)
        for registrar in self._registrars:
            registrar(router)
        return router

    # -- Services --

    def _service(self, name: str, factory: Callable[[], Any]) -> Any:
        """Create a service once, even when first requests race for it."""
        service = self._services.get(name)
        if service is not None:
            return service
        with self._services_lock:
            service = self._services.get(name)
            if service is None:
                service = self._services[name] = factory()
        return service

    def provide(self, name: str, service: Any) -> None:
        """Replace a service instance (tests, custom drivers)."""
        with self._services_lock:
            self._services[name] = service

    @property
    def cache(self) -> Cache:
        from trindade.cache import Cache

        return self._service("cache", lambda: Cache(self.config.cache, base=self.config.paths.base))

    @property
    def db(self) -> Database:
        from trindade.data import Database

        def create() -> Database:
            url = self.config.database.url
            path = url.removeprefix("sqlite:///")
            if url.startswith("sqlite:///") and path not in ("", ":memory:") and not Path(path).is_absolute():
                url = "sqlite:///" + str(Path(self.config.paths.base) / path)
            return Database(url, echo=self.config.database.echo)

        return self._service("db", create)

    @property
    def mail(self) -> Mail:
        from trindade.mail import Mail

        return self._service("mail", lambda: Mail(self.config.mail, self.templates))

    @property
    def hash(self) -> Hash:
        from trindade.security import Hash

        return self._service("hash", Hash)

    @property
    def files(self) -> FileStorage:
        from trindade.files import FileStorage

        return self._service("files", lambda: FileStorage(self.config.path("uploads")))

    @property
    def assets(self) -> Assets:
        from trindade.assets import Assets

        return self._service("assets", lambda: Assets(self.config.path("public")))

    @property
    def lang(self) -> Lang:
        from trindade.lang import Lang

        return self._service("lang", lambda: Lang(self.config.path("lang"), self.config.locale))

    @property
    def templates(self) -> Templates:
        from trindade.templating import Templates

        return self._service("templates", lambda: Templates(self.config, self._template_packages))

    # -- Request handling --

    def handle(self, request: Request) -> Response:
        """Run one request through the router and build its response."""
        session = self._sessions.load(request.cookies)
        cfg = self.config.session
        cookies = CookieJar(request.cookies, secure=cfg.secure, httponly=cfg.httponly, domain=cfg.domain)
        ctx = Context(self, request, session, cookies)

        try:
            router = self.build_router(ctx)
            # HEAD runs the GET route; send_response drops the body.
            method = "GET" if request.method == "HEAD" else request.method
            outcome = router.dispatch(method, request.path)
            if outcome.matched:
                response = self._to_response(ctx, outcome.result)
            elif outcome.handled:
                response = self._to_response(ctx, outcome.result)
                if response.status == 200:
                    response = response.with_status(404)
            else:
                response = render_error_view(self.templates, 404, "Page not found")
        except HTTPError as exc:
            response = handle_http_error(exc, request, self.templates)
        except Exception as exc:
            response = handle_internal_error(exc, request, self.templates, self.config.debug)

        response = ctx.finalize(response)
        return self._sessions.save(session, response)

    @staticmethod
    def _to_response(ctx: Context, result: Any) -> Response:
        if isinstance(result, Response):
            return result
        if result is None:
            return ctx.response if ctx.response is not None else Response()
        if isinstance(result, (dict, list)):
            return json_response(result)
        if isinstance(result, bytes):
            return Response(body=result)
        return Response(body=str(result))

    # -- ASGI --

    async def __call__(self, scope: dict[str, Any], receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            msg = f"Unsupported ASGI scope type {scope['type']!r}"
            raise RuntimeError(msg)

        body = await read_body(receive)
        request = Request.from_asgi(scope, body)
        response = await anyio.to_thread.run_sync(self.handle, request)
        await send_response(response, send, head=request.method == "HEAD")

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                try:
                    await self.shutdown()
                except Exception as exc:
                    logger.exception("Shutdown failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result
        db = self._services.get("db")
        if db is not None:
            db.close()

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Configure file logging and serve the app with pounce."""
        from trindade.log import configure_logging
        from trindade.server.dev import run_server

        configure_logging(self.config.path("logs"), self.config.log_level)
        run_server(self, host or self.config.host, port or self.config.port, reload=self.config.debug)


def _noop(router: Router) -> None:
    return None
