"""Signed cookie sessions.

Session data is serialized as JSON and signed with ``itsdangerous``;
it is readable by the client but cannot be tampered with. A session
is loaded at the start of each request and written back as a
``Set-Cookie`` on the response::

    session = SessionStore(config.session, config.secret_key).load(request.cookies)
    session.set("user_id", 42)
    session.flash("notice", "Saved")
    response = store.save(session, response)
"""

import hmac
import logging
import secrets
import time
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from trindade.config import SessionConfig
from trindade.errors import ConfigurationError
from trindade.http.cookies import SetCookie
from trindade.http.response import Response

logger = logging.getLogger("trindade.session")

_ID_KEY = "_id"
_REGENERATED_KEY = "_regenerated_at"
_FLASH_KEY = "_flash"
_CSRF_KEY = "_csrf_token"

_RESERVED = frozenset({_ID_KEY, _REGENERATED_KEY, _FLASH_KEY, _CSRF_KEY})


def _new_id() -> str:
    return secrets.token_hex(16)


class Session:
    """Per-request session state.

    Keys starting with an underscore are bookkeeping (id, flash
    messages, CSRF token) and are hidden from ``all()``.
    """

    __slots__ = ("_data", "destroyed", "modified")

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._data.setdefault(_ID_KEY, _new_id())
        self._data.setdefault(_REGENERATED_KEY, time.time())
        self.modified = data is None
        self.destroyed = False

    # -- Values --

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self.modified = True

    def has(self, key: str) -> bool:
        return key in self._data

    def all(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k not in _RESERVED}

    def clear(self) -> None:
        """Drop all user values, keeping the session id."""
        keep = {k: self._data[k] for k in (_ID_KEY, _REGENERATED_KEY) if k in self._data}
        self._data = keep
        self.modified = True

    def destroy(self) -> None:
        """Drop everything; the cookie is deleted on the response."""
        self._data = {_ID_KEY: _new_id(), _REGENERATED_KEY: time.time()}
        self.destroyed = True
        self.modified = True

    # -- Identity --

    @property
    def id(self) -> str:
        return self._data[_ID_KEY]

    def regenerate(self) -> str:
        """Issue a new session id, keeping the data. Returns the new id."""
        self._data[_ID_KEY] = _new_id()
        self._data[_REGENERATED_KEY] = time.time()
        self.modified = True
        return self.id

    def regenerate_if_stale(self, max_age: int) -> bool:
        """Regenerate the id when it is older than *max_age* seconds."""
        issued = float(self._data.get(_REGENERATED_KEY, 0))
        if time.time() - issued > max_age:
            self.regenerate()
            return True
        return False

    # -- Flash messages --

    def flash(self, key: str, value: Any) -> None:
        """Store a value readable exactly once, by ``get_flash``."""
        self._data.setdefault(_FLASH_KEY, {})[key] = value
        self.modified = True

    def get_flash(self, key: str, default: Any = None) -> Any:
        flashes = self._data.get(_FLASH_KEY) or {}
        if key not in flashes:
            return default
        value = flashes.pop(key)
        if not flashes:
            self._data.pop(_FLASH_KEY, None)
        self.modified = True
        return value

    def has_flash(self, key: str) -> bool:
        return key in (self._data.get(_FLASH_KEY) or {})

    def get_all_flash(self) -> dict[str, Any]:
        """Return and consume every pending flash message."""
        flashes = self._data.pop(_FLASH_KEY, None) or {}
        if flashes:
            self.modified = True
        return dict(flashes)

    # -- CSRF --

    def generate_csrf_token(self) -> str:
        """The session's CSRF token, created on first use."""
        token = self._data.get(_CSRF_KEY)
        if not token:
            token = secrets.token_hex(32)
            self._data[_CSRF_KEY] = token
            self.modified = True
        return token

    def validate_csrf_token(self, token: str | None) -> bool:
        expected = self._data.get(_CSRF_KEY)
        if not token or not expected:
            return False
        return hmac.compare_digest(str(token), str(expected))

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


class SessionStore:
    """Loads sessions from and saves them to a signed cookie."""

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig, secret_key: str) -> None:
        if not secret_key:
            msg = "AppConfig.secret_key must be set to use sessions."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(secret_key, salt="trindade.session")

    @property
    def config(self) -> SessionConfig:
        return self._config

    def load(self, cookies: dict[str, str]) -> Session:
        """Session from the request cookies; a fresh one if absent or invalid."""
        raw = cookies.get(self._config.name)
        if not raw:
            return Session()
        try:
            data = self._serializer.loads(raw, max_age=self._config.lifetime)
        except BadSignature:
            logger.debug("Discarding session cookie with bad or expired signature")
            return Session()
        if not isinstance(data, dict):
            return Session()
        session = Session(data)
        session.regenerate_if_stale(self._config.regenerate_after)
        return session

    def dump(self, session: Session) -> str:
        return self._serializer.dumps(session.to_dict())

    def cookie(self, session: Session) -> SetCookie:
        cfg = self._config
        if session.destroyed:
            return SetCookie(name=cfg.name, value="", max_age=0, path=cfg.path, domain=cfg.domain)
        return SetCookie(
            name=cfg.name,
            value=self.dump(session),
            max_age=cfg.lifetime,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    def save(self, session: Session, response: Response) -> Response:
        """Attach the session cookie to *response* when anything changed."""
        if not session.modified:
            return response
        return response.with_cookie(self.cookie(session))
