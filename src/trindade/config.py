"""Application configuration.

AppConfig is a frozen dataclass made of frozen sections, immutable
after creation, IDE-autocompletable, no string-key dict lookups at the
call sites. Build it directly, from a mapping, or from a TOML file::

    config = AppConfig(debug=True, secret_key="s3cr3t")
    config = load_config("trindade.toml")
"""

from __future__ import annotations

import dataclasses
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from trindade.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Filesystem locations, relative to the working directory unless absolute."""

    base: str = "."
    public: str = "public"
    storage: str = "storage"
    cache: str = "storage/cache"
    logs: str = "storage/logs"
    uploads: str = "storage/uploads"
    views: str = "views"
    lang: str = "lang"
    plugins: str = "plugins"


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Signed cookie session settings.

    Sessions are signed with ``AppConfig.secret_key``, not encrypted.
    """

    name: str = "trindade_session"
    lifetime: int = 7200
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    regenerate_after: int = 300


@dataclass(frozen=True, slots=True)
class RedisConfig:
    host: str = "127.0.0.1"
    port: int = 6379
    password: str | None = None
    database: int = 0
    timeout: float | None = None


@dataclass(frozen=True, slots=True)
class MemcachedServer:
    host: str = "127.0.0.1"
    port: int = 11211


@dataclass(frozen=True, slots=True)
class MemcachedConfig:
    servers: tuple[MemcachedServer, ...] = (MemcachedServer(),)


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Cache settings. ``driver`` is one of ``file``, ``redis``, ``memcached``."""

    driver: str = "file"
    prefix: str = "trindade:"
    path: str = "storage/cache"
    ttl: int = 3600
    redis: RedisConfig = RedisConfig()
    memcached: MemcachedConfig = MemcachedConfig()


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Database settings. Only ``sqlite:///`` URLs are supported."""

    url: str = "sqlite:///storage/database.sqlite"
    echo: bool = False


@dataclass(frozen=True, slots=True)
class MailConfig:
    """SMTP settings. ``encryption`` is ``tls`` (STARTTLS), ``ssl`` or ``none``."""

    host: str = "localhost"
    port: int = 587
    username: str = ""
    password: str = ""
    encryption: str = "tls"
    from_address: str = ""
    from_name: str = "Trindade"
    timeout: float = 10.0
    debug: bool = False


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Security
    secret_key: str = ""

    # Locale
    timezone: str = "UTC"
    locale: str = "pt"

    # Logging
    log_level: str = "debug"

    # Sections
    paths: PathsConfig = PathsConfig()
    session: SessionConfig = SessionConfig()
    cache: CacheConfig = CacheConfig()
    database: DatabaseConfig = DatabaseConfig()
    mail: MailConfig = MailConfig()

    # Plugin name -> settings table (``enabled`` plus plugin options)
    plugins: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AppConfig:
        """Build a config from nested plain data (e.g. parsed TOML)."""
        return _build(cls, data, "")

    def path(self, name: str) -> Path:
        """Resolve a ``paths`` entry against ``paths.base``."""
        value = Path(getattr(self.paths, name))
        if value.is_absolute():
            return value
        return Path(self.paths.base) / value


def load_config(path: str | Path) -> AppConfig:
    """Load an ``AppConfig`` from a TOML file.

    Raises ``ConfigurationError`` if the file is missing, unparsable or
    holds unknown keys.
    """
    path = Path(path)
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except FileNotFoundError:
        msg = f"Config file not found: {path}"
        raise ConfigurationError(msg) from None
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid config file {path}: {exc}"
        raise ConfigurationError(msg) from exc
    return AppConfig.from_mapping(data)


def _build(cls: type, data: Mapping[str, Any], where: str) -> Any:
    if not isinstance(data, Mapping):
        msg = f"Config section {where or '<root>'!r} must be a table"
        raise ConfigurationError(msg)

    fields = {f.name: f for f in dataclasses.fields(cls)}
    unknown = sorted(set(data) - set(fields))
    if unknown:
        msg = f"Unknown config key(s) in {where or '<root>'}: {', '.join(unknown)}"
        raise ConfigurationError(msg)

    kwargs: dict[str, Any] = {}
    for name, value in data.items():
        default = _default_of(fields[name])
        key = f"{where}.{name}" if where else name
        if dataclasses.is_dataclass(default):
            kwargs[name] = _build(type(default), value, key)
        elif name == "servers":
            kwargs[name] = tuple(_build(MemcachedServer, s, key) for s in value)
        else:
            kwargs[name] = value
    return cls(**kwargs)


def _default_of(f: dataclasses.Field[Any]) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory()
    return None
