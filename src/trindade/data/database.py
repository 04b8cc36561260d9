"""SQLite database access.

SQL in, dicts or frozen dataclasses out. Alongside the raw API sits a
small set of table helpers for the common CRUD statements::

    db = Database("sqlite:///storage/app.sqlite")
    db.create("users", {"id": "INTEGER PRIMARY KEY", "email": "TEXT NOT NULL"})
    user_id = db.insert("users", {"email": "ana@example.com"})
    db.select("users", {"email": "ana@example.com"})
    db.update("users", {"email": "ana@trindade.dev"}, {"id": user_id})

    with db.transaction():
        db.execute("UPDATE accounts SET balance = balance - ? WHERE id = ?", 10, 1)
        db.execute("UPDATE accounts SET balance = balance + ? WHERE id = ?", 10, 2)

Table and column names are validated; values are always bound
parameters.
"""

import logging
import re
import sqlite3
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

from trindade.data._mapping import map_row, map_rows
from trindade.data.errors import DataError, DriverNotInstalledError, QueryError

logger = logging.getLogger("trindade.data")

T = TypeVar("T")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ORDER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\s+(ASC|DESC))?$", re.IGNORECASE)

Where = Mapping[str, Any] | None


def _sqlite_path(url: str) -> str:
    if not url.startswith("sqlite:///"):
        scheme = url.split(":", 1)[0]
        msg = f"Unsupported database URL scheme {scheme!r}; only sqlite:/// is available"
        raise DriverNotInstalledError(msg)
    return url.removeprefix("sqlite:///") or ":memory:"


def _ident(name: str) -> str:
    if not _IDENTIFIER.match(name):
        msg = f"Invalid SQL identifier: {name!r}"
        raise QueryError(msg)
    return f'"{name}"'


def _where(where: Where) -> tuple[str, list[Any]]:
    if not where:
        return "", []
    clauses: list[str] = []
    params: list[Any] = []
    for column, value in where.items():
        if value is None:
            clauses.append(f"{_ident(column)} IS NULL")
        elif isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
            if not values:
                clauses.append("0")
                continue
            clauses.append(f"{_ident(column)} IN ({', '.join('?' for _ in values)})")
            params.extend(values)
        else:
            clauses.append(f"{_ident(column)} = ?")
            params.append(value)
    return " WHERE " + " AND ".join(clauses), params


class Database:
    """A single SQLite connection shared by all threads.

    Statements are serialized with a re-entrant lock; outside a
    ``transaction()`` block every statement commits on its own.
    """

    __slots__ = ("_conn", "_depth", "_echo", "_lock", "_path", "_url")

    def __init__(self, url: str, /, *, echo: bool = False) -> None:
        self._url = url
        self._path = _sqlite_path(url)
        self._echo = echo
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None
        self._depth = 0

    @property
    def url(self) -> str:
        return self._url

    # -- Connection --

    def connect(self) -> sqlite3.Connection:
        """Open the connection if needed and return it."""
        with self._lock:
            if self._conn is None:
                if self._path != ":memory:":
                    Path(self._path).parent.mkdir(parents=True, exist_ok=True)
                try:
                    conn = sqlite3.connect(self._path, check_same_thread=False, autocommit=True)
                except sqlite3.Error as exc:
                    msg = f"Cannot open database {self._path}: {exc}"
                    raise DataError(msg) from exc
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA foreign_keys = ON")
                self._conn = conn
            return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the block atomically: commit on success, roll back on error.

        Nested blocks join the outermost transaction.
        """
        with self._lock:
            conn = self.connect()
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            conn.execute("BEGIN")
            self._depth = 1
            try:
                yield
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            else:
                conn.execute("COMMIT")
            finally:
                self._depth = 0

    # -- Raw SQL --

    def _run(self, sql: str, params: Sequence[Any]) -> sqlite3.Cursor:
        if self._echo:
            logger.info("SQL: %s %r", sql, tuple(params))
        with self._lock:
            try:
                return self.connect().execute(sql, tuple(params))
            except sqlite3.Error as exc:
                msg = f"Query failed: {exc}\n  SQL: {sql}"
                raise QueryError(msg) from exc

    def execute(self, sql: str, *params: Any) -> int:
        """Run a write statement; return the number of affected rows."""
        return self._run(sql, params).rowcount

    def execute_script(self, sql: str) -> None:
        with self._lock:
            try:
                self.connect().executescript(sql)
            except sqlite3.Error as exc:
                msg = f"Script failed: {exc}"
                raise QueryError(msg) from exc

    def fetch_all(self, sql: str, *params: Any) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(row) for row in self._run(sql, params).fetchall()]

    def fetch_row(self, sql: str, *params: Any) -> dict[str, Any] | None:
        with self._lock:
            row = self._run(sql, params).fetchone()
        return dict(row) if row is not None else None

    def fetch_val(self, sql: str, *params: Any) -> Any:
        """First column of the first row, or ``None``."""
        with self._lock:
            row = self._run(sql, params).fetchone()
        return row[0] if row is not None else None

    def fetch(self, cls: type[T], sql: str, *params: Any) -> list[T]:
        return map_rows(cls, self.fetch_all(sql, *params))

    def fetch_one(self, cls: type[T], sql: str, *params: Any) -> T | None:
        row = self.fetch_row(sql, *params)
        return map_row(cls, row) if row is not None else None

    # -- Table helpers --

    def create(self, table: str, columns: Mapping[str, str], *, if_not_exists: bool = True) -> None:
        """``CREATE TABLE`` with ``{column: "TYPE CONSTRAINTS"}`` definitions."""
        body = ", ".join(f"{_ident(name)} {definition}" for name, definition in columns.items())
        guard = "IF NOT EXISTS " if if_not_exists else ""
        self._run(f"CREATE TABLE {guard}{_ident(table)} ({body})", ())

    def drop(self, table: str) -> None:
        self._run(f"DROP TABLE IF EXISTS {_ident(table)}", ())

    def select(
        self,
        table: str,
        where: Where = None,
        columns: str | Sequence[str] = "*",
        *,
        order: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Rows of *table* matching every ``column = value`` in *where*.

        A ``None`` value matches ``IS NULL``; a list or tuple matches ``IN``.
        """
        cols = "*" if columns == "*" else ", ".join(_ident(c) for c in columns)
        clause, params = _where(where)
        sql = f"SELECT {cols} FROM {_ident(table)}{clause}"
        if order:
            if not _ORDER.match(order):
                msg = f"Invalid ORDER BY: {order!r}"
                raise QueryError(msg)
            column, _, direction = order.partition(" ")
            sql += f" ORDER BY {_ident(column)} {direction.strip().upper()}".rstrip()
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
            if offset is not None:
                sql += f" OFFSET {int(offset)}"
        return self.fetch_all(sql, *params)

    def get(
        self,
        table: str,
        where: Where = None,
        columns: str | Sequence[str] = "*",
    ) -> dict[str, Any] | None:
        """First row matching *where*, or ``None``."""
        rows = self.select(table, where, columns, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, values: Mapping[str, Any]) -> int:
        """Insert one row; return its rowid."""
        cols = ", ".join(_ident(c) for c in values)
        marks = ", ".join("?" for _ in values)
        cursor = self._run(f"INSERT INTO {_ident(table)} ({cols}) VALUES ({marks})", list(values.values()))
        return int(cursor.lastrowid or 0)

    def update(self, table: str, values: Mapping[str, Any], where: Where = None) -> int:
        """Update matching rows; return how many changed."""
        if not values:
            return 0
        assignments = ", ".join(f"{_ident(c)} = ?" for c in values)
        clause, params = _where(where)
        sql = f"UPDATE {_ident(table)} SET {assignments}{clause}"
        return self._run(sql, [*values.values(), *params]).rowcount

    def delete(self, table: str, where: Where = None) -> int:
        clause, params = _where(where)
        return self._run(f"DELETE FROM {_ident(table)}{clause}", params).rowcount

    def count(self, table: str, where: Where = None) -> int:
        clause, params = _where(where)
        return int(self.fetch_val(f"SELECT COUNT(*) FROM {_ident(table)}{clause}", *params) or 0)

    def has(self, table: str, where: Where = None) -> bool:
        clause, params = _where(where)
        sql = f"SELECT 1 FROM {_ident(table)}{clause} LIMIT 1"
        return self.fetch_val(sql, *params) is not None

    def table_exists(self, table: str) -> bool:
        sql = "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?"
        return self.fetch_val(sql, table) is not None
