"""Redis cache store (redis-py).

Values are pickled. ``clear`` only removes keys under the cache
prefix, never the whole database.
"""

import functools
import logging
import pickle
from collections.abc import Iterable
from typing import Any

from trindade.cache.protocol import MISSING
from trindade.config import RedisConfig
from trindade.errors import CacheError, ConfigurationError

logger = logging.getLogger("trindade.cache")


def _library_errors() -> tuple[type[BaseException], ...]:
    try:
        import redis
    except ImportError:
        return (OSError,)
    return (redis.RedisError, OSError)


def _guarded(method: Any) -> Any:
    """Re-raise client failures as ``CacheError``."""

    @functools.wraps(method)
    def wrapper(self: Any, *args: Any) -> Any:
        try:
            return method(self, *args)
        except self._errors as exc:
            msg = f"Redis {method.__name__} failed: {exc}"
            raise CacheError(msg) from exc

    return wrapper


def _connect(config: RedisConfig) -> Any:
    try:
        import redis
    except ImportError:
        msg = (
            "The redis cache driver requires the 'redis' package. "
            "Install it with: pip install trindade[redis]"
        )
        raise ConfigurationError(msg) from None

    client = redis.Redis(
        host=config.host,
        port=config.port,
        password=config.password or None,
        db=config.database,
        socket_timeout=config.timeout,
        socket_connect_timeout=config.timeout,
    )
    try:
        client.ping()
    except redis.RedisError as exc:
        msg = f"Cannot connect to Redis at {config.host}:{config.port}: {exc}"
        raise CacheError(msg) from exc
    return client


class RedisStore:
    name = "redis"

    def __init__(self, config: RedisConfig | None = None, *, client: Any = None) -> None:
        self._client = client if client is not None else _connect(config or RedisConfig())
        self._errors = _library_errors()

    @property
    def client(self) -> Any:
        return self._client

    @_guarded
    def get(self, key: str) -> Any:
        raw = self._client.get(key)
        if raw is None:
            return MISSING
        return pickle.loads(raw)  # noqa: S301

    @_guarded
    def set(self, key: str, value: Any, ttl: int) -> bool:
        raw = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        if ttl > 0:
            return bool(self._client.setex(key, ttl, raw))
        return bool(self._client.set(key, raw))

    @_guarded
    def remove(self, key: str) -> bool:
        return bool(self._client.delete(key))

    @_guarded
    def clear(self, prefix: str) -> bool:
        keys = list(self._client.scan_iter(match=prefix + "*"))
        if keys:
            self._client.delete(*keys)
        logger.debug("Cleared %d redis keys under %r", len(keys), prefix)
        return True

    @_guarded
    def has(self, key: str) -> bool:
        return bool(self._client.exists(key))

    @_guarded
    def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        keys = list(keys)
        if not keys:
            return {}
        values = self._client.mget(keys)
        return {
            key: MISSING if raw is None else pickle.loads(raw)  # noqa: S301
            for key, raw in zip(keys, values, strict=True)
        }
