"""Memcached cache store (pymemcache ``HashClient``).

Memcached cannot enumerate keys, so ``clear`` flushes every server.
"""

import functools
import logging
from collections.abc import Iterable
from typing import Any

from trindade.cache.protocol import MISSING
from trindade.config import MemcachedConfig
from trindade.errors import CacheError, ConfigurationError

logger = logging.getLogger("trindade.cache")


def _library_errors() -> tuple[type[BaseException], ...]:
    try:
        from pymemcache.exceptions import MemcacheError
    except ImportError:
        return (OSError,)
    return (MemcacheError, OSError)


def _guarded(method: Any) -> Any:
    """Re-raise client failures as ``CacheError``."""

    @functools.wraps(method)
    def wrapper(self: Any, *args: Any) -> Any:
        try:
            return method(self, *args)
        except self._errors as exc:
            msg = f"Memcached {method.__name__} failed: {exc}"
            raise CacheError(msg) from exc

    return wrapper


def _connect(config: MemcachedConfig) -> Any:
    try:
        from pymemcache import serde
        from pymemcache.client.hash import HashClient
    except ImportError:
        msg = (
            "The memcached cache driver requires the 'pymemcache' package. "
            "Install it with: pip install trindade[memcached]"
        )
        raise ConfigurationError(msg) from None

    servers = [(s.host, s.port) for s in config.servers]
    return HashClient(servers, serde=serde.pickle_serde)


class MemcachedStore:
    name = "memcached"

    def __init__(self, config: MemcachedConfig | None = None, *, client: Any = None) -> None:
        self._client = client if client is not None else _connect(config or MemcachedConfig())
        self._errors = _library_errors()

    @property
    def client(self) -> Any:
        return self._client

    @_guarded
    def get(self, key: str) -> Any:
        return self._client.get(key, default=MISSING)

    @_guarded
    def set(self, key: str, value: Any, ttl: int) -> bool:
        return bool(self._client.set(key, value, expire=max(ttl, 0), noreply=False))

    @_guarded
    def remove(self, key: str) -> bool:
        return bool(self._client.delete(key, noreply=False))

    @_guarded
    def clear(self, prefix: str) -> bool:
        logger.debug("Flushing all memcached servers (prefix %r cannot be scoped)", prefix)
        return bool(self._client.flush_all(noreply=False))

    def has(self, key: str) -> bool:
        return self.get(key) is not MISSING

    @_guarded
    def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        keys = list(keys)
        found = self._client.get_many(keys) if keys else {}
        return {key: found.get(key, MISSING) for key in keys}
