"""Trindade exception hierarchy.

Shared across the router, app, services and plugins so every module
raises and catches the same types.
"""

from dataclasses import dataclass


class TrindadeError(Exception):
    """Base for all trindade-specific errors."""


class ConfigurationError(TrindadeError):
    """Raised when app configuration is invalid."""


@dataclass(frozen=True, slots=True)
class HTTPError(TrindadeError):
    """An error that maps directly to an HTTP status code.

    Handlers raise these to short-circuit with a specific status. The
    app catches them and renders the matching error view.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class CacheError(TrindadeError):
    """Raised when a cache backend cannot be reached or configured."""


class MailError(TrindadeError):
    """Raised when the mailer is misconfigured."""
