"""SQLite data access: raw SQL plus table helpers."""

from trindade.data.database import Database
from trindade.data.errors import DataError, DriverNotInstalledError, QueryError

__all__ = ["DataError", "Database", "DriverNotInstalledError", "QueryError"]
