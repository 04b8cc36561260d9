"""Data layer error hierarchy."""

from trindade.errors import TrindadeError


class DataError(TrindadeError):
    """Base for all trindade.data errors."""


class DriverNotInstalledError(DataError):
    """Raised when the database URL names a driver that is not supported."""


class QueryError(DataError):
    """Raised when a SQL statement fails."""
