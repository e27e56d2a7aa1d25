"""ObjectIndex: the local table of object records."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Any

from bucket_index._db import from_db_time, to_db_time, utcnow
from bucket_index._errors import BucketIndexError, DuplicatePath, NotFound
from bucket_index._filters import COLUMNS, Filter, compile_filter, eq, in_
from bucket_index._models import ObjectRecord, ObjectType, StorageClass

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from bucket_index._db import Database
    from bucket_index._models import NewObject

Order = tuple[tuple[str, str], ...]

#: Listing order: folders first, then name (byte order), then insertion order.
LISTING_ORDER: Order = (("type", "ASC"), ("basename", "ASC"), ("id", "ASC"))

_UPDATABLE = frozenset({"size", "storage_class", "last_modified"})


def _row_to_record(row: sqlite3.Row) -> ObjectRecord:
    return ObjectRecord(
        id=row["id"],
        type=ObjectType(row["type"]),
        path=row["path"],
        dirname=row["dirname"],
        basename=row["basename"],
        size=row["size"],
        storage_class=StorageClass(row["storage_class"]) if row["storage_class"] else None,
        last_modified=from_db_time(row["last_modified"]),
        created_at=from_db_time(row["created_at"]),
        updated_at=from_db_time(row["updated_at"]),
    )


def _order_clause(order: Order) -> str:
    parts = []
    for column, direction in order:
        if column not in COLUMNS:
            raise ValueError(f"Unknown order column {column!r}")
        if direction.upper() not in ("ASC", "DESC"):
            raise ValueError(f"Unknown order direction {direction!r}")
        parts.append(f"{column} {direction.upper()}")
    return ", ".join(parts)


class ObjectIndex:
    """Repository over the ``objects`` table.

    The index owns hierarchy metadata; each write is a single atomic
    statement unless grouped with ``db.transaction()``.

    :param db: The database holding the table.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def __repr__(self) -> str:
        return f"ObjectIndex(db={self._db!r})"

    @property
    def db(self) -> Database:
        return self._db

    # region: reads

    def _select(self, where: Filter | None, order: Order | None, limit: int | None) -> list[ObjectRecord]:
        params: list[Any] = []
        sql = "SELECT * FROM objects"
        if where is not None:
            sql += f" WHERE {compile_filter(where, params)}"
        if order:
            sql += f" ORDER BY {_order_clause(order)}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        return [_row_to_record(row) for row in self._db.execute(sql, params).fetchall()]

    def find_one(self, where: Filter) -> ObjectRecord | None:
        """Return the first record matching ``where``, or ``None``."""
        rows = self._select(where, (("id", "ASC"),), 1)
        return rows[0] if rows else None

    def find_all(
        self,
        where: Filter | None = None,
        *,
        order: Order | None = LISTING_ORDER,
        limit: int | None = None,
    ) -> list[ObjectRecord]:
        """Return records matching ``where`` in ``order``, at most ``limit`` of them."""
        return self._select(where, order, limit)

    def get(self, object_id: int) -> ObjectRecord | None:
        return self.find_one(eq("id", object_id))

    def get_many(self, ids: Sequence[int]) -> list[ObjectRecord]:
        """Return the records for ``ids`` in the order requested, skipping missing ids."""
        if not ids:
            return []
        found = {r.id: r for r in self._select(in_("id", ids), None, None)}
        return [found[i] for i in ids if i in found]

    def count(self, where: Filter | None = None) -> int:
        params: list[Any] = []
        sql = "SELECT COUNT(*) FROM objects"
        if where is not None:
            sql += f" WHERE {compile_filter(where, params)}"
        return int(self._db.execute(sql, params).fetchone()[0])

    # endregion

    # region: writes

    def _reload(self, where: Filter, key: object) -> ObjectRecord:
        """Read back a record just written.

        :raises BucketIndexError: If the record is gone, e.g. removed by
            another connection to the same file.
        """
        record = self.find_one(where)
        if record is None:
            raise BucketIndexError(f"Record disappeared after write: {key}")
        return record

    def insert(self, obj: NewObject) -> ObjectRecord:
        """Insert a new record.

        :raises DuplicatePath: If a record with the same path exists.
        """
        now = to_db_time(utcnow())
        try:
            with self._db.transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO objects "
                    "(type, path, dirname, basename, size, storage_class, last_modified, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        int(obj.type),
                        obj.path,
                        obj.dirname,
                        obj.basename,
                        obj.size,
                        obj.storage_class.value if obj.storage_class else None,
                        to_db_time(obj.last_modified),
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            if "objects.path" in str(exc):
                raise DuplicatePath(f"Duplicate path: {obj.path}", path=obj.path) from exc
            raise
        return self._reload(eq("id", int(cursor.lastrowid)), obj.path)  # type: ignore[arg-type]

    def update(self, object_id: int, **fields: Any) -> ObjectRecord:
        """Update content metadata (``size``, ``storage_class``, ``last_modified``).

        :raises NotFound: If no record has ``object_id``.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update columns {sorted(unknown)}")
        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name == "last_modified":
                value = to_db_time(value)
            elif name == "storage_class" and value is not None:
                value = StorageClass(value).value
            values[name] = value
        values["updated_at"] = to_db_time(utcnow())
        assignments = ", ".join(f"{name} = ?" for name in values)
        with self._db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE objects SET {assignments} WHERE id = ?",
                (*values.values(), object_id),
            )
        if cursor.rowcount == 0:
            raise NotFound(f"Object not found: {object_id}", ids=(object_id,))
        return self._reload(eq("id", object_id), object_id)

    def upsert(self, obj: NewObject, conflict_columns: tuple[str, ...] = ("path",)) -> ObjectRecord:
        """Insert ``obj`` or refresh the content metadata of the record it collides with.

        The existing record keeps its id and ``created_at``.
        """
        for column in conflict_columns:
            if column not in COLUMNS:
                raise ValueError(f"Unknown conflict column {column!r}")
        now = to_db_time(utcnow())
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT INTO objects "
                "(type, path, dirname, basename, size, storage_class, last_modified, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
                f"ON CONFLICT({', '.join(conflict_columns)}) DO UPDATE SET "
                "type = excluded.type, "
                "size = excluded.size, "
                "storage_class = excluded.storage_class, "
                "last_modified = excluded.last_modified, "
                "updated_at = excluded.updated_at",
                (
                    int(obj.type),
                    obj.path,
                    obj.dirname,
                    obj.basename,
                    obj.size,
                    obj.storage_class.value if obj.storage_class else None,
                    to_db_time(obj.last_modified),
                    now,
                    now,
                ),
            )
        return self._reload(eq("path", obj.path), obj.path)

    def destroy_many(self, ids: Iterable[int]) -> int:
        """Delete the records with ``ids``; returns how many were removed."""
        id_list = list(ids)
        if not id_list:
            return 0
        params: list[Any] = []
        clause = compile_filter(in_("id", id_list), params)
        with self._db.transaction() as conn:
            cursor = conn.execute(f"DELETE FROM objects WHERE {clause}", params)
        return cursor.rowcount

    def reconcile(self, objects: Iterable[NewObject]) -> tuple[int, int]:
        """Make the index hold exactly ``objects``.

        Every object is upserted by path (surviving records keep their ids);
        every record whose path is not among ``objects`` is deleted. Runs as
        one local transaction.

        :returns: ``(upserted, removed)`` counts.
        """
        upserted = 0
        with self._db.transaction() as conn:
            conn.execute("CREATE TEMP TABLE IF NOT EXISTS live_paths (path TEXT PRIMARY KEY)")
            conn.execute("DELETE FROM live_paths")
            for obj in objects:
                self.upsert(obj)
                conn.execute("INSERT OR IGNORE INTO live_paths (path) VALUES (?)", (obj.path,))
                upserted += 1
            cursor = conn.execute("DELETE FROM objects WHERE path NOT IN (SELECT path FROM live_paths)")
            removed = cursor.rowcount
            conn.execute("DELETE FROM live_paths")
        return upserted, removed

    # endregion
