"""Persistence of the singleton S3 settings record."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bucket_index._db import from_db_time, to_db_time, utcnow
from bucket_index._errors import BucketIndexError
from bucket_index._models import Settings

if TYPE_CHECKING:
    from bucket_index._db import Database

log = logging.getLogger(__name__)

MAIN_SETTINGS_ID = 1


class SettingsStore:
    """Reads and upserts the settings row keyed by :data:`MAIN_SETTINGS_ID`.

    :param db: The database holding the ``settings`` table.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def get_settings(self) -> Settings | None:
        """Return the stored settings, or ``None`` if never configured."""
        row = self._db.execute("SELECT * FROM settings WHERE id = ?", (MAIN_SETTINGS_ID,)).fetchone()
        if row is None:
            return None
        return Settings(
            access_key_id=row["access_key_id"],
            secret_access_key=row["secret_access_key"],
            region=row["region"],
            bucket=row["bucket"],
            endpoint=row["endpoint"],
            updated_at=from_db_time(row["updated_at"]),
        )

    def update_s3_settings(
        self,
        *,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str | None = None,
        bucket: str | None = None,
        endpoint: str | None = None,
    ) -> Settings:
        """Create or update the settings record.

        A blank ``secret_access_key`` leaves the stored secret untouched.
        """
        now = to_db_time(utcnow())
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT INTO settings "
                "(id, access_key_id, secret_access_key, region, bucket, endpoint, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "access_key_id = excluded.access_key_id, "
                "secret_access_key = COALESCE(excluded.secret_access_key, settings.secret_access_key), "
                "region = excluded.region, "
                "bucket = excluded.bucket, "
                "endpoint = excluded.endpoint, "
                "updated_at = excluded.updated_at",
                (
                    MAIN_SETTINGS_ID,
                    access_key_id or None,
                    secret_access_key or None,
                    region or None,
                    bucket or None,
                    endpoint or None,
                    now,
                    now,
                ),
            )
        log.info("S3 settings updated (bucket=%s, region=%s, endpoint=%s)", bucket, region, endpoint)
        settings = self.get_settings()
        if settings is None:
            raise BucketIndexError("Settings record disappeared after write")
        return settings
