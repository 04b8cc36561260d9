"""Trindade: a small web framework with ordered routing, plugins and services.

Basic usage::

    from trindade import App, AppConfig

    app = App(AppConfig(secret_key="s3cr3t"))

    @app.on("GET /hello/:name")
    def hello(ctx, name):
        return f"Hello, {name}!"

    app.run()

Services hang off the app and the per-request context: ``ctx.db``,
``ctx.cache``, ``ctx.mail``, ``ctx.session``, ``ctx.lang``, ``ctx.files``.
"""

__version__ = "1.0.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "HTTPError",
    "NotFound",
    "Plugin",
    "Request",
    "Response",
    "Router",
    "TrindadeError",
    "load_config",
    "redirect",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import trindade`` fast while providing a clean top-level API.
    """
    if name == "App":
        from trindade.app import App

        return App

    if name in ("AppConfig", "load_config"):
        from trindade import config as _config

        return getattr(_config, name)

    if name == "Context":
        from trindade.context import Context

        return Context

    if name == "Router":
        from trindade.routing import Router

        return Router

    if name == "Plugin":
        from trindade.plugins import Plugin

        return Plugin

    if name == "Request":
        from trindade.http.request import Request

        return Request

    if name in ("Response", "redirect"):
        from trindade.http import response as _resp

        return getattr(_resp, name)

    if name in ("TrindadeError", "ConfigurationError", "HTTPError", "NotFound"):
        from trindade import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
