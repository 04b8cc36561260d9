"""Kida environment setup and view rendering.

Views are addressed without the ``.html`` suffix: ``"blog/index"``
loads ``blog/index.html``. The application's ``views`` directory is
searched first, then plugin template packages, then trindade's own
fallback views (``errors/404``, ``errors/500``).
"""

from collections.abc import Iterable, Mapping
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader, PackageLoader

from trindade.config import AppConfig

DEFAULT_EXTENSION = ".html"


def template_name(view: str) -> str:
    """``"blog/index"`` -> ``"blog/index.html"``; dots and slashes both separate."""
    view = view.strip("/")
    if view.endswith(DEFAULT_EXTENSION):
        return view
    return view.replace(".", "/") + DEFAULT_EXTENSION


def create_environment(
    config: AppConfig,
    packages: Iterable[tuple[str, str]] = (),
    globals_: Mapping[str, Any] | None = None,
) -> Environment:
    """Build the kida environment for *config*.

    *packages* are ``(package, directory)`` pairs contributed by plugins.
    """
    loaders: list[Any] = []
    views = config.path("views")
    if views.is_dir():
        loaders.append(FileSystemLoader(str(views)))
    loaders.extend(PackageLoader(package, directory) for package, directory in packages)
    loaders.append(PackageLoader("trindade.templating", "views"))

    env = Environment(loader=ChoiceLoader(loaders), autoescape=True, auto_reload=config.debug)
    for name, value in (globals_ or {}).items():
        env.add_global(name, value)
    return env


def _is_missing_template(exc: Exception) -> bool:
    return type(exc).__name__ == "TemplateNotFoundError"


class Templates:
    """Renders views through a lazily built kida environment."""

    __slots__ = ("_config", "_env", "_globals", "_packages")

    def __init__(self, config: AppConfig, packages: Iterable[tuple[str, str]] = ()) -> None:
        self._config = config
        self._packages = list(packages)
        self._globals: dict[str, Any] = {}
        self._env: Environment | None = None

    @property
    def env(self) -> Environment:
        if self._env is None:
            self._env = create_environment(self._config, self._packages, self._globals)
        return self._env

    def add_package(self, package: str, directory: str = "templates") -> None:
        """Add a template package. Must happen before the first render."""
        self._packages.append((package, directory))
        self._env = None

    def add_global(self, name: str, value: Any) -> None:
        self._globals[name] = value
        if self._env is not None:
            self._env.add_global(name, value)

    def exists(self, view: str) -> bool:
        try:
            self.env.get_template(template_name(view))
        except Exception as exc:
            if _is_missing_template(exc):
                return False
            raise
        return True

    def render(self, view: str, data: Mapping[str, Any] | None = None) -> str:
        return self.env.get_template(template_name(view)).render(dict(data or {}))
