"""Tests for trindade.session: session state and the signed cookie store."""

import time

import pytest

from trindade.config import SessionConfig
from trindade.errors import ConfigurationError
from trindade.http.response import Response
from trindade.session import Session, SessionStore


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(SessionConfig(), "secret")


class TestSession:
    def test_new_session_is_modified(self) -> None:
        assert Session().modified is True
        assert Session({"_id": "abc"}).modified is False

    def test_values(self) -> None:
        session = Session({})
        session.set("user", 1)
        assert session.get("user") == 1
        assert session.has("user")
        session.remove("user")
        assert session.get("user", "gone") == "gone"
        assert session.modified

    def test_all_hides_bookkeeping(self) -> None:
        session = Session()
        session.set("a", 1)
        session.flash("notice", "hi")
        session.generate_csrf_token()
        assert session.all() == {"a": 1}

    def test_clear_keeps_id(self) -> None:
        session = Session()
        session.set("a", 1)
        sid = session.id
        session.clear()
        assert session.all() == {}
        assert session.id == sid

    def test_destroy(self) -> None:
        session = Session()
        session.set("a", 1)
        sid = session.id
        session.destroy()
        assert session.destroyed
        assert session.get("a") is None
        assert session.id != sid

    def test_regenerate_keeps_data(self) -> None:
        session = Session()
        session.set("a", 1)
        old = session.id
        assert session.regenerate() != old
        assert session.get("a") == 1

    def test_regenerate_if_stale(self, monkeypatch: pytest.MonkeyPatch) -> None:
        session = Session({"_id": "abc", "_regenerated_at": time.time()})
        assert session.regenerate_if_stale(300) is False
        monkeypatch.setattr(time, "time", lambda: session.get("_regenerated_at") + 301)
        assert session.regenerate_if_stale(300) is True
        assert session.id != "abc"


class TestFlash:
    def test_read_once(self) -> None:
        session = Session()
        session.flash("notice", "Saved")
        assert session.has_flash("notice")
        assert session.get_flash("notice") == "Saved"
        assert session.get_flash("notice") is None
        assert not session.has_flash("notice")

    def test_get_all_consumes(self) -> None:
        session = Session()
        session.flash("error", "Bad")
        session.flash("notice", "Good")
        assert session.get_all_flash() == {"error": "Bad", "notice": "Good"}
        assert session.get_all_flash() == {}


class TestCsrf:
    def test_token_stable(self) -> None:
        session = Session()
        token = session.generate_csrf_token()
        assert len(token) == 64
        assert session.generate_csrf_token() == token

    def test_validate(self) -> None:
        session = Session()
        token = session.generate_csrf_token()
        assert session.validate_csrf_token(token)
        assert not session.validate_csrf_token("wrong")
        assert not session.validate_csrf_token(None)

    def test_no_token_never_valid(self) -> None:
        assert not Session().validate_csrf_token("anything")


class TestSessionStore:
    def test_requires_secret(self) -> None:
        with pytest.raises(ConfigurationError):
            SessionStore(SessionConfig(), "")

    def test_round_trip_through_cookie(self, store: SessionStore) -> None:
        session = Session()
        session.set("user", "ana")
        cookie = store.cookie(session)
        loaded = store.load({"trindade_session": cookie.value})
        assert loaded.get("user") == "ana"
        assert loaded.id == session.id
        assert loaded.modified is False

    def test_missing_cookie_gives_fresh_session(self, store: SessionStore) -> None:
        assert store.load({}).all() == {}

    def test_tampered_cookie_discarded(self, store: SessionStore) -> None:
        session = Session()
        session.set("role", "viewer")
        value = store.dump(session)
        loaded = store.load({"trindade_session": value[:-2] + "xx"})
        assert loaded.get("role") is None

    def test_other_secret_rejected(self, store: SessionStore) -> None:
        session = Session()
        session.set("a", 1)
        other = SessionStore(SessionConfig(), "different")
        assert other.load({"trindade_session": store.dump(session)}).get("a") is None

    def test_save_only_when_modified(self, store: SessionStore) -> None:
        unchanged = Session({"_id": "x", "_regenerated_at": time.time()})
        assert store.save(unchanged, Response()).cookies == ()
        unchanged.set("a", 1)
        cookie = store.save(unchanged, Response()).cookies[0]
        assert cookie.name == "trindade_session"
        assert cookie.max_age == 7200
        assert cookie.httponly

    def test_destroyed_session_deletes_cookie(self, store: SessionStore) -> None:
        session = Session()
        session.destroy()
        cookie = store.cookie(session)
        assert cookie.max_age == 0
        assert cookie.value == ""
