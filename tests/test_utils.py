"""Tests for trindade.utils."""

import pytest

from trindade.http.headers import Headers
from trindade.http.request import Request
from trindade.utils import (
    array_forget,
    array_get,
    array_set,
    client_ip,
    format_file_size,
    is_valid_email,
    is_valid_ip,
    is_valid_url,
    random_string,
    slug,
    token,
    truncate,
)


class TestStrings:
    def test_slug(self) -> None:
        assert slug("Olá Mundo!") == "ola-mundo"
        assert slug("  Ação -- rápida  ") == "acao-rapida"
        assert slug("a b", "_") == "a_b"

    def test_truncate(self) -> None:
        assert truncate("short", 10) == "short"
        assert truncate("hello world", 6) == "hello..."

    def test_random_string_and_token(self) -> None:
        assert len(random_string(12)) == 12
        assert random_string(5, "a") == "aaaaa"
        assert len(token(8)) == 16

    @pytest.mark.parametrize(
        ("size", "expected"),
        [(0, "0 B"), (512, "512 B"), (1536, "1.5 KB"), (1048576, "1 MB"), (5 * 1024**5, "5120 TB")],
    )
    def test_format_file_size(self, size: int, expected: str) -> None:
        assert format_file_size(size) == expected


class TestValidation:
    def test_email(self) -> None:
        assert is_valid_email("ana@example.com")
        assert not is_valid_email("ana@")
        assert not is_valid_email("no-at.example.com")
        assert not is_valid_email("a@localhost")

    def test_url(self) -> None:
        assert is_valid_url("https://example.com/x")
        assert not is_valid_url("example.com")
        assert not is_valid_url("javascript:alert(1)")

    def test_ip(self) -> None:
        assert is_valid_ip("10.0.0.1")
        assert is_valid_ip("::1", 6)
        assert not is_valid_ip("10.0.0.1", 6)
        assert not is_valid_ip("999.1.1.1")


class TestClientIp:
    def _request(self, headers: list[tuple[str, str]], client: tuple[str, int] | None = None) -> Request:
        return Request(method="GET", path="/", headers=Headers(headers), client=client)

    def test_socket_peer(self) -> None:
        assert client_ip(self._request([], ("192.168.1.2", 1234))) == "192.168.1.2"

    def test_first_forwarded_hop(self) -> None:
        request = self._request([("X-Forwarded-For", "203.0.113.7, 10.0.0.1")], ("10.0.0.1", 1))
        assert client_ip(request) == "203.0.113.7"

    def test_client_ip_header_wins(self) -> None:
        request = self._request([("Client-IP", "198.51.100.3"), ("X-Forwarded-For", "203.0.113.7")])
        assert client_ip(request) == "198.51.100.3"

    def test_invalid_header(self) -> None:
        assert client_ip(self._request([("X-Forwarded-For", "not-an-ip")], ("10.0.0.1", 1))) is None

    def test_nothing_known(self) -> None:
        assert client_ip(self._request([])) is None


class TestArrays:
    def test_get(self) -> None:
        data = {"db": {"host": "localhost"}, "a.b": 1}
        assert array_get(data, "db.host") == "localhost"
        assert array_get(data, "a.b") == 1
        assert array_get(data, "db.port", 5432) == 5432

    def test_set_creates_parents(self) -> None:
        data: dict = {"db": "replace-me"}
        array_set(data, "db.host", "x")
        array_set(data, "cache.redis.port", 6379)
        assert data == {"db": {"host": "x"}, "cache": {"redis": {"port": 6379}}}

    def test_forget(self) -> None:
        data = {"db": {"host": "x", "port": 1}}
        array_forget(data, "db.port")
        array_forget(data, "missing.key")
        assert data == {"db": {"host": "x"}}
