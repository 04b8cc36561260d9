"""Filesystem cache store.

One pickle file per key, named by the md5 of the key, holding
``{"expires": ts_or_0, "data": value}``. Reads go through an
in-process dict first; it honours the same expiry and holds at most
``memory_limit`` entries (expired ones are pruned first, then the oldest).
"""

import hashlib
import logging
import os
import pickle
import tempfile
import threading
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from trindade.cache.protocol import MISSING
from trindade.errors import CacheError

logger = logging.getLogger("trindade.cache")

_SUFFIX = ".cache"
_MEMORY_LIMIT = 1024


class FileStore:
    name = "file"

    def __init__(self, path: str | Path, memory_limit: int = _MEMORY_LIMIT) -> None:
        self._path = Path(path)
        try:
            self._path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create cache directory {self._path}: {exc}"
            raise CacheError(msg) from exc
        self._memory: dict[str, tuple[float, Any]] = {}
        self._memory_limit = max(memory_limit, 1)
        self._memory_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _file(self, key: str) -> Path:
        return self._path / (hashlib.md5(key.encode("utf-8")).hexdigest() + _SUFFIX)  # noqa: S324

    @staticmethod
    def _expired(expires: float) -> bool:
        return expires > 0 and expires < time.time()

    def get(self, key: str) -> Any:
        cached = self._memory.get(key)
        if cached is not None:
            expires, value = cached
            if not self._expired(expires):
                return value
            self._memory.pop(key, None)

        file = self._file(key)
        try:
            with file.open("rb") as fh:
                payload = pickle.load(fh)  # noqa: S301
        except FileNotFoundError:
            return MISSING
        except (OSError, pickle.UnpicklingError, EOFError) as exc:
            logger.warning("Unreadable cache file %s: %s", file, exc)
            file.unlink(missing_ok=True)
            return MISSING

        expires = float(payload.get("expires", 0))
        if self._expired(expires):
            file.unlink(missing_ok=True)
            return MISSING

        self._remember(key, expires, payload["data"])
        return payload["data"]

    def _remember(self, key: str, expires: float, value: Any) -> None:
        with self._memory_lock:
            memory = self._memory
            memory.pop(key, None)
            if len(memory) >= self._memory_limit:
                for stale, (stale_expires, _) in list(memory.items()):
                    if self._expired(stale_expires):
                        memory.pop(stale, None)
            while len(memory) >= self._memory_limit:
                memory.pop(next(iter(memory)), None)
            memory[key] = (expires, value)

    def set(self, key: str, value: Any, ttl: int) -> bool:
        expires = time.time() + ttl if ttl > 0 else 0.0
        payload = {"key": key, "expires": expires, "data": value}
        file = self._file(key)
        try:
            fd, tmp = tempfile.mkstemp(dir=self._path, suffix=".tmp")
            with os.fdopen(fd, "wb") as fh:
                pickle.dump(payload, fh, protocol=pickle.HIGHEST_PROTOCOL)
            os.replace(tmp, file)
        except OSError as exc:
            logger.error("Cannot write cache file %s: %s", file, exc)
            return False
        self._remember(key, expires, value)
        return True

    def remove(self, key: str) -> bool:
        self._memory.pop(key, None)
        file = self._file(key)
        if not file.exists():
            return False
        file.unlink(missing_ok=True)
        return True

    def clear(self, prefix: str) -> bool:
        """Delete every entry whose key starts with *prefix*."""
        with self._memory_lock:
            self._memory = {k: v for k, v in self._memory.items() if not k.startswith(prefix)}
        for file in self._path.glob("*" + _SUFFIX):
            try:
                with file.open("rb") as fh:
                    key = pickle.load(fh).get("key", "")  # noqa: S301
            except (OSError, pickle.UnpicklingError, EOFError):
                key = prefix
            if key.startswith(prefix):
                file.unlink(missing_ok=True)
        return True

    def has(self, key: str) -> bool:
        return self.get(key) is not MISSING

    def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        return {key: self.get(key) for key in keys}
