"""SQLite database holding the object index and the settings record."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from bucket_index._types import PathLike

_SCHEMA = """
CREATE TABLE IF NOT EXISTS objects (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    type           INTEGER NOT NULL,
    path           TEXT NOT NULL UNIQUE,
    dirname        TEXT NOT NULL,
    basename       TEXT NOT NULL,
    size           INTEGER,
    storage_class  TEXT,
    last_modified  TEXT,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_objects_listing
    ON objects(dirname, type, basename, id);

CREATE TABLE IF NOT EXISTS settings (
    id                 INTEGER PRIMARY KEY,
    access_key_id      TEXT,
    secret_access_key  TEXT,
    region             TEXT,
    bucket             TEXT,
    endpoint           TEXT,
    created_at         TEXT NOT NULL,
    updated_at         TEXT NOT NULL
);
"""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def from_db_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class Database:
    """Owns the SQLite connection and schema.

    Writes commit immediately unless they run inside :meth:`transaction`.

    :param path: Database file, or ``":memory:"``.
    """

    def __init__(self, path: PathLike = ":memory:") -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path)
        self._conn.row_factory = sqlite3.Row
        if self.path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        self._depth = 0

    def __repr__(self) -> str:
        return f"Database(path={self.path!r})"

    def execute(self, sql: str, params: tuple[object, ...] | list[object] = ()) -> sqlite3.Cursor:
        return self._conn.execute(sql, params)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Group writes into one commit; nested blocks join the outer one."""
        if self._depth:
            self._depth += 1
            try:
                yield self._conn
            finally:
                self._depth -= 1
            return
        self._depth = 1
        try:
            yield self._conn
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()
        finally:
            self._depth = 0

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
