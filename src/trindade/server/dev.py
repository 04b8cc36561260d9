"""Serve an app with the pounce ASGI server."""

from typing import Any

from trindade.errors import ConfigurationError


def run_server(app: Any, host: str, port: int, *, reload: bool = False, app_path: str | None = None) -> None:
    """Start pounce with the live *app* object.

    With ``app_path`` (``"module:attr"``) pounce re-imports the app on
    reload so code changes take effect.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError:
        msg = "Serving requires the 'pounce' server. Install it with: pip install trindade[server]"
        raise ConfigurationError(msg) from None

    config = ServerConfig(host=host, port=port, workers=1, reload=reload)
    Server(config, app, app_path=app_path).run()
