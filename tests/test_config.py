"""Tests for trindade.config: defaults, TOML loading and path resolution."""

from pathlib import Path

import pytest

from trindade.config import AppConfig, MemcachedServer, load_config
from trindade.errors import ConfigurationError


class TestDefaults:
    def test_app_defaults(self) -> None:
        config = AppConfig()
        assert config.port == 8000
        assert config.locale == "pt"
        assert config.cache.driver == "file"
        assert config.session.name == "trindade_session"
        assert config.database.url.startswith("sqlite:///")
        assert dict(config.plugins) == {}

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            AppConfig().debug = True  # type: ignore[misc]


class TestFromMapping:
    def test_nested_sections(self) -> None:
        config = AppConfig.from_mapping(
            {
                "debug": True,
                "cache": {"driver": "redis", "redis": {"port": 6380}},
                "mail": {"host": "smtp.example.com"},
            }
        )
        assert config.debug is True
        assert config.cache.driver == "redis"
        assert config.cache.redis.port == 6380
        assert config.cache.redis.host == "127.0.0.1"
        assert config.mail.host == "smtp.example.com"

    def test_memcached_servers(self) -> None:
        config = AppConfig.from_mapping(
            {"cache": {"memcached": {"servers": [{"host": "a", "port": 1}, {"host": "b"}]}}}
        )
        assert config.cache.memcached.servers == (MemcachedServer("a", 1), MemcachedServer("b", 11211))

    def test_plugins_table(self) -> None:
        config = AppConfig.from_mapping({"plugins": {"blog": {"enabled": True, "prefix": "/news"}}})
        assert config.plugins["blog"]["prefix"] == "/news"

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown config key"):
            AppConfig.from_mapping({"nope": 1})

    def test_unknown_nested_key(self) -> None:
        with pytest.raises(ConfigurationError, match="cache"):
            AppConfig.from_mapping({"cache": {"drvier": "file"}})

    def test_section_must_be_table(self) -> None:
        with pytest.raises(ConfigurationError, match="must be a table"):
            AppConfig.from_mapping({"session": "oops"})


class TestLoadConfig:
    def test_reads_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "trindade.toml"
        path.write_text('secret_key = "abc"\n\n[paths]\nviews = "templates"\n')
        config = load_config(path)
        assert config.secret_key == "abc"
        assert config.paths.views == "templates"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("this is = = not toml")
        with pytest.raises(ConfigurationError, match="Invalid config"):
            load_config(path)


class TestPaths:
    def test_relative_to_base(self, tmp_path: Path) -> None:
        config = AppConfig.from_mapping({"paths": {"base": str(tmp_path)}})
        assert config.path("logs") == tmp_path / "storage" / "logs"

    def test_absolute_kept(self, tmp_path: Path) -> None:
        config = AppConfig.from_mapping({"paths": {"uploads": str(tmp_path)}})
        assert config.path("uploads") == tmp_path
