"""Translations loaded from ``<lang_dir>/<locale>.toml``.

Keys are dotted paths into the TOML tables and ``:name`` placeholders
are replaced from keyword arguments::

    # lang/pt.toml
    [messages]
    welcome = "Bem-vindo :name!"

    lang = Lang("lang", "pt")
    lang.get("messages.welcome", name="Ana")  # "Bem-vindo Ana!"
    lang.get("messages.missing")               # "messages.missing"

The app holds one ``Lang``; each request works on ``lang.for_locale()``,
a copy sharing the loaded catalogues, so ``set_locale`` in one request
never changes the language another request sees.
"""

import copy
import logging
import threading
import tomllib
from pathlib import Path
from typing import Any

from trindade.errors import ConfigurationError

logger = logging.getLogger("trindade.lang")


class Lang:
    __slots__ = ("_catalogues", "_lock", "_locale", "_messages", "_path")

    def __init__(self, path: str | Path, locale: str = "pt") -> None:
        self._path = Path(path)
        self._catalogues: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._messages: dict[str, Any] = {}
        self._locale = locale
        self.set_locale(locale)

    @property
    def locale(self) -> str:
        return self._locale

    def for_locale(self, locale: str | None = None) -> "Lang":
        """A copy bound to *locale* (this one's by default), sharing catalogues."""
        view = copy.copy(self)
        view.set_locale(locale or self._locale)
        return view

    def set_locale(self, locale: str) -> None:
        """Switch this instance's locale; a missing file means an empty catalogue."""
        self._messages = self._catalogue(locale)
        self._locale = locale

    def _catalogue(self, locale: str) -> dict[str, Any]:
        with self._lock:
            cached = self._catalogues.get(locale)
            if cached is not None:
                return cached
            file = self._path / f"{locale}.toml"
            try:
                with file.open("rb") as fh:
                    messages = tomllib.load(fh)
            except FileNotFoundError:
                logger.debug("No translations for locale %r in %s", locale, self._path)
                messages = {}
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid translation file {file}: {exc}"
                raise ConfigurationError(msg) from exc
            self._catalogues[locale] = messages
            return messages

    def get(self, key: str, **replace: Any) -> str:
        """Message for *key*, or *key* itself when missing or not a string."""
        current: Any = self._messages
        for segment in key.split("."):
            if not isinstance(current, dict) or segment not in current:
                return key
            current = current[segment]
        if not isinstance(current, str):
            return key
        for name, value in replace.items():
            current = current.replace(f":{name}", str(value))
        return current

    def has(self, key: str) -> bool:
        return self.get(key) != key

    __call__ = get
