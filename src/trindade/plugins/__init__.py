"""Plugins: bundles of routes, templates and tables installed on an App.

A plugin subclasses ``Plugin`` and overrides what it needs::

    class HelloPlugin(Plugin):
        name = "hello"

        def register(self, router):
            router.group(self.prefix, lambda r: r.on("GET /", self.index))

        def index(self, ctx):
            return "hello"

    app.plugin(HelloPlugin(prefix="/hello"))

Built-in plugins (``admin``, ``blog``) and project plugins found under
``paths.plugins`` are installed by ``load_plugins(app)`` when their
``[plugins.<name>]`` table (or their ``plugin.toml``) says
``enabled = true``.
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import logging
import sys
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from trindade.errors import ConfigurationError

if TYPE_CHECKING:
    from trindade.app import App
    from trindade.data import Database
    from trindade.routing import Router

logger = logging.getLogger("trindade.plugins")

BUILTIN: dict[str, str] = {
    "admin": "trindade.plugins.admin:AdminPlugin",
    "blog": "trindade.plugins.blog:BlogPlugin",
}


class Plugin:
    """Base class for plugins.

    ``package`` names the import package holding a ``templates/``
    directory; leave it empty for plugins without templates. Options
    passed to the constructor (or read from the plugin's config table)
    are available as ``self.options``.
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    version: ClassVar[str] = "1.0.0"
    default_prefix: ClassVar[str] = ""
    package: ClassVar[str] = ""

    def __init__(self, *, prefix: str | None = None, **options: Any) -> None:
        if not self.name:
            msg = f"{type(self).__name__} must define a name"
            raise ConfigurationError(msg)
        self.prefix = prefix if prefix is not None else self.default_prefix
        self.options = options
        self.app: App | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} prefix={self.prefix!r}>"

    def register(self, router: Router) -> None:
        """Add the plugin's routes to a per-request router."""

    def boot(self, app: App) -> None:
        """Called once when the plugin is installed on *app*."""
        self.app = app

    def install(self, db: Database) -> None:
        """Create the plugin's tables. Must be safe to run repeatedly."""

    def template_package(self) -> tuple[str, str] | None:
        if not self.package:
            return None
        return self.package, "templates"


def is_enabled(settings: Mapping[str, Any] | None) -> bool:
    return bool(settings) and bool(settings.get("enabled", False))


def load_builtin(name: str) -> type[Plugin]:
    """Import a built-in plugin class by its short name."""
    try:
        target = BUILTIN[name]
    except KeyError:
        msg = f"Unknown plugin {name!r}. Built-in plugins: {', '.join(sorted(BUILTIN))}"
        raise ConfigurationError(msg) from None
    module_name, _, attr = target.partition(":")
    return getattr(importlib.import_module(module_name), attr)


def read_manifest(directory: Path) -> dict[str, Any]:
    """Parse ``<directory>/plugin.toml``; missing file means an empty table."""
    manifest = directory / "plugin.toml"
    if not manifest.is_file():
        return {}
    try:
        with manifest.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid plugin manifest {manifest}: {exc}"
        raise ConfigurationError(msg) from exc


def discover(directory: Path) -> list[type[Plugin]]:
    """Import every enabled project plugin under *directory*.

    A project plugin is a directory with an ``__init__.py`` and a
    ``plugin.toml``; the first ``Plugin`` subclass defined in the module
    is used.
    """
    if not directory.is_dir():
        return []
    found: list[type[Plugin]] = []
    for child in sorted(directory.iterdir()):
        init = child / "__init__.py"
        if not init.is_file() or not is_enabled(read_manifest(child)):
            continue
        module_name = f"trindade_plugins.{child.name}"
        spec = importlib.util.spec_from_file_location(module_name, init)
        if spec is None or spec.loader is None:
            continue
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if issubclass(obj, Plugin) and obj is not Plugin and obj.__module__ == module_name:
                found.append(obj)
                break
        else:
            logger.warning("No Plugin subclass found in %s", init)
    return found


def load_plugins(app: App) -> list[Plugin]:
    """Install the plugins enabled in ``app.config.plugins`` and ``paths.plugins``."""
    installed: list[Plugin] = []
    for name, settings in app.config.plugins.items():
        if name not in BUILTIN or name in app.plugins or not is_enabled(settings):
            continue
        options = {k: v for k, v in settings.items() if k != "enabled"}
        installed.append(app.plugin(load_builtin(name)(**options)))
    for cls in discover(app.config.path("plugins")):
        if cls.name in app.plugins:
            continue
        installed.append(app.plugin(cls()))
    return installed


__all__ = ["BUILTIN", "Plugin", "discover", "is_enabled", "load_builtin", "load_plugins"]
