"""Tests for trindade.plugins: the Plugin base, built-ins and project discovery."""

import sys
from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path

import pytest

from trindade import App, AppConfig
from trindade.errors import ConfigurationError
from trindade.plugins import BUILTIN, Plugin, discover, is_enabled, load_builtin, load_plugins, read_manifest
from trindade.plugins.admin import AdminPlugin
from trindade.plugins.blog import BlogPlugin
from trindade.routing import Router
from trindade.testing import TestClient

HELLO_PLUGIN = '''
from trindade.plugins import Plugin


class HelloPlugin(Plugin):
    name = "hello"
    default_prefix = "/hello"

    def register(self, router):
        router.group(self.prefix, lambda r: r.on("GET /", lambda ctx: "hello from plugin"))
'''


class GreeterPlugin(Plugin):
    name = "greeter"
    default_prefix = "/greet"

    def register(self, router: Router) -> None:
        router.group(
            self.prefix,
            lambda r: r.on("GET /:name", lambda ctx, who: f"{self.options.get('greeting', 'Olá')} {who}"),
            not_found=lambda ctx: "no greeting here",
        )


@pytest.fixture(autouse=True)
def _forget_project_plugins() -> Iterator[None]:
    yield
    for name in [m for m in sys.modules if m.startswith("trindade_plugins.")]:
        del sys.modules[name]


def _project_plugin(base: Path, name: str, *, enabled: bool = True, source: str = HELLO_PLUGIN) -> Path:
    directory = base / "plugins" / name
    directory.mkdir(parents=True)
    (directory / "__init__.py").write_text(source)
    (directory / "plugin.toml").write_text(f'name = "{name}"\nenabled = {"true" if enabled else "false"}\n')
    return directory


class TestPluginBase:
    def test_requires_name(self) -> None:
        with pytest.raises(ConfigurationError, match="must define a name"):
            Plugin()

    def test_prefix_and_options(self) -> None:
        plugin = GreeterPlugin(prefix="/hi", greeting="Oi")
        assert plugin.prefix == "/hi"
        assert plugin.options == {"greeting": "Oi"}
        assert GreeterPlugin().prefix == "/greet"
        assert "greeter" in repr(plugin)

    def test_template_package(self) -> None:
        assert GreeterPlugin().template_package() is None
        assert BlogPlugin().template_package() == ("trindade.plugins.blog", "templates")

    async def test_installed_routes_and_not_found(self, app: App) -> None:
        plugin = app.plugin(GreeterPlugin(greeting="Bom dia"))
        assert plugin.app is app
        assert app.plugins == {"greeter": plugin}
        async with TestClient(app) as client:
            assert (await client.get("/greet/ana")).text == "Bom dia ana"
            missing = await client.get("/greet/a/b")
        assert missing.status == 404
        assert missing.text == "no greeting here"

    def test_duplicate_rejected(self, app: App) -> None:
        app.plugin(GreeterPlugin())
        with pytest.raises(ValueError, match="already installed"):
            app.plugin(GreeterPlugin())


class TestBuiltins:
    def test_load_builtin(self) -> None:
        assert load_builtin("admin") is AdminPlugin
        assert load_builtin("blog") is BlogPlugin
        assert set(BUILTIN) == {"admin", "blog"}

    def test_unknown_builtin(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown plugin 'shop'"):
            load_builtin("shop")

    def test_is_enabled(self) -> None:
        assert is_enabled({"enabled": True})
        assert not is_enabled({"enabled": False})
        assert not is_enabled({})
        assert not is_enabled(None)


class TestManifest:
    def test_read(self, tmp_path: Path) -> None:
        directory = _project_plugin(tmp_path, "hello")
        assert read_manifest(directory) == {"name": "hello", "enabled": True}

    def test_missing(self, tmp_path: Path) -> None:
        assert read_manifest(tmp_path) == {}

    def test_invalid(self, tmp_path: Path) -> None:
        (tmp_path / "plugin.toml").write_text("enabled = = true")
        with pytest.raises(ConfigurationError, match="Invalid plugin manifest"):
            read_manifest(tmp_path)


class TestDiscover:
    def test_finds_enabled_plugins(self, tmp_path: Path) -> None:
        _project_plugin(tmp_path, "hello")
        _project_plugin(tmp_path, "sleepy", enabled=False)
        found = discover(tmp_path / "plugins")
        assert [cls.name for cls in found] == ["hello"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert discover(tmp_path / "nowhere") == []

    def test_module_without_plugin(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        _project_plugin(tmp_path, "empty", source="VALUE = 1\n")
        assert discover(tmp_path / "plugins") == []
        assert "No Plugin subclass" in caplog.text


class TestLoadPlugins:
    async def test_project_plugin_served(self, app: App, tmp_path: Path) -> None:
        _project_plugin(tmp_path, "hello")
        installed = load_plugins(app)
        assert [p.name for p in installed] == ["hello"]
        async with TestClient(app) as client:
            assert (await client.get("/hello")).text == "hello from plugin"

    def test_builtins_from_config(self, config: AppConfig) -> None:
        app = App(replace(config, plugins={"blog": {"enabled": True, "prefix": "/news"}, "admin": {"enabled": False}}))
        installed = load_plugins(app)
        assert [p.name for p in installed] == ["blog"]
        assert installed[0].prefix == "/news"

    def test_already_installed_skipped(self, config: AppConfig) -> None:
        app = App(replace(config, plugins={"blog": {"enabled": True}}))
        app.plugin(BlogPlugin())
        assert load_plugins(app) == []

    def test_unknown_config_tables_ignored(self, config: AppConfig) -> None:
        app = App(replace(config, plugins={"shop": {"enabled": True}}))
        assert load_plugins(app) == []
