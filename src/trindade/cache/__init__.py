"""Cache facade over file, Redis and Memcached stores.

Keys are namespaced with ``CacheConfig.prefix`` before they reach the
store, so several applications can share one Redis database::

    cache = Cache(config.cache)
    cache.set("user:1", {"name": "Ana"}, ttl=600)
    cache.get("user:1")
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from trindade.cache.protocol import MISSING, CacheStore
from trindade.config import CacheConfig
from trindade.errors import ConfigurationError

logger = logging.getLogger("trindade.cache")

DRIVERS = ("file", "redis", "memcached")


def create_store(config: CacheConfig, base: str | Path = ".") -> CacheStore:
    """Instantiate the store named by ``config.driver``."""
    if config.driver == "file":
        from trindade.cache._file import FileStore

        path = Path(config.path)
        return FileStore(path if path.is_absolute() else Path(base) / path)
    if config.driver == "redis":
        from trindade.cache._redis import RedisStore

        return RedisStore(config.redis)
    if config.driver == "memcached":
        from trindade.cache._memcached import MemcachedStore

        return MemcachedStore(config.memcached)
    msg = f"Unknown cache driver {config.driver!r}; expected one of {', '.join(DRIVERS)}"
    raise ConfigurationError(msg)


class Cache:
    """Key/value cache with a default TTL of one hour."""

    __slots__ = ("_config", "_store")

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        store: CacheStore | None = None,
        base: str | Path = ".",
    ) -> None:
        self._config = config or CacheConfig()
        self._store = store if store is not None else create_store(self._config, base)
        logger.debug("Cache ready (driver=%s, prefix=%r)", self._store.name, self._config.prefix)

    @property
    def driver(self) -> str:
        return self._store.name

    @property
    def store(self) -> CacheStore:
        return self._store

    def _key(self, key: str) -> str:
        return self._config.prefix + key

    def get(self, key: str, default: Any = None) -> Any:
        value = self._store.get(self._key(key))
        return default if value is MISSING else value

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store *value*; ``ttl`` defaults to ``CacheConfig.ttl``, ``<= 0`` never expires."""
        return self._store.set(self._key(key), value, self._config.ttl if ttl is None else ttl)

    def remove(self, key: str) -> bool:
        return self._store.remove(self._key(key))

    def clear(self) -> bool:
        """Remove every entry under this cache's prefix."""
        return self._store.clear(self._config.prefix)

    def has(self, key: str) -> bool:
        return self._store.has(self._key(key))

    def remember(self, key: str, ttl: int | None, factory: Any) -> Any:
        """Return the cached value, computing and storing it on a miss."""
        value = self._store.get(self._key(key))
        if value is MISSING:
            value = factory()
            self.set(key, value, ttl)
        return value

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        keys = list(keys)
        found = self._store.get_many([self._key(k) for k in keys])
        result: dict[str, Any] = {}
        for key in keys:
            value = found.get(self._key(key), MISSING)
            result[key] = default if value is MISSING else value
        return result

    def set_multiple(self, values: Mapping[str, Any], ttl: int | None = None) -> bool:
        ok = True
        for key, value in values.items():
            ok = self.set(key, value, ttl) and ok
        return ok

    def remove_multiple(self, keys: Iterable[str]) -> bool:
        ok = True
        for key in keys:
            ok = self.remove(key) and ok
        return ok


__all__ = ["DRIVERS", "Cache", "CacheStore", "create_store"]
