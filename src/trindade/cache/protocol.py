"""Cache store protocol.

A store persists values under full (already prefixed) keys. The
``Cache`` facade handles prefixing and defaults; stores only move
bytes around.
"""

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

MISSING: Any = object()


@runtime_checkable
class CacheStore(Protocol):
    """What every cache driver implements.

    ``ttl`` is in seconds; ``ttl <= 0`` stores the value without expiry.
    ``get`` returns :data:`MISSING` for absent or expired keys so that
    a stored ``None`` stays distinguishable.
    """

    name: str

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, ttl: int) -> bool: ...

    def remove(self, key: str) -> bool: ...

    def clear(self, prefix: str) -> bool: ...

    def has(self, key: str) -> bool: ...

    def get_many(self, keys: Iterable[str]) -> dict[str, Any]: ...
