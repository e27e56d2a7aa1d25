"""FileManager, the request/response surface used by front ends."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bucket_index._config import AdapterConfig
from bucket_index._db import Database
from bucket_index._engine import DEFAULT_LIMIT, SyncEngine
from bucket_index._index import ObjectIndex
from bucket_index._registry import create_adapter
from bucket_index._settings import SettingsStore

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path
    from types import TracebackType

    from bucket_index._adapter import ObjectStoreAdapter
    from bucket_index._models import ObjectDetail, ObjectPage, ObjectRecord, Settings
    from bucket_index._types import PathLike, ProgressCallback

log = logging.getLogger(__name__)


class FileManager:
    """Owns the index database and the current remote adapter.

    The adapter is built lazily from the stored S3 settings, or from
    ``adapter_config`` when one is given. Updating the settings closes the
    current adapter; the next object operation builds a fresh one.

    :param db_path: SQLite database file (``":memory:"`` for a throwaway index).
    :param adapter_config: Fixed adapter configuration overriding the stored settings.
    :raises BackendUnavailable: From object operations when no S3 settings exist.
    """

    def __init__(self, db_path: PathLike = ":memory:", *, adapter_config: AdapterConfig | None = None) -> None:
        self._db = Database(db_path)
        self._index = ObjectIndex(self._db)
        self._settings = SettingsStore(self._db)
        self._adapter_config = adapter_config
        self._adapter: ObjectStoreAdapter | None = None
        self._engine: SyncEngine | None = None

    def __repr__(self) -> str:
        return f"FileManager(db={self._db.path!r})"

    @property
    def index(self) -> ObjectIndex:
        return self._index

    @property
    def engine(self) -> SyncEngine:
        """The engine bound to the current adapter, built on first use."""
        if self._engine is None:
            config = self._adapter_config or AdapterConfig.from_settings(self._settings.get_settings())
            self._adapter = create_adapter(config)
            self._engine = SyncEngine(self._index, self._adapter)
            log.debug("Built %s adapter", config.type)
        return self._engine

    def _reset_adapter(self) -> None:
        if self._adapter is not None:
            self._adapter.close()
        self._adapter = None
        self._engine = None

    # region: settings

    def get_settings(self) -> Settings | None:
        return self._settings.get_settings()

    def update_s3_settings(
        self,
        *,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str | None = None,
        bucket: str | None = None,
        endpoint: str | None = None,
    ) -> Settings:
        """Persist new S3 settings and drop the adapter built from the old ones."""
        settings = self._settings.update_s3_settings(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            region=region,
            bucket=bucket,
            endpoint=endpoint,
        )
        self._reset_adapter()
        return settings

    def sync_objects_from_s3(self) -> tuple[int, int]:
        return self.engine.sync_objects_from_s3()

    # endregion

    # region: objects

    def get_objects(
        self,
        dirname: str = "",
        keyword: str | None = None,
        after: int | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> ObjectPage:
        return self.engine.get_objects(dirname, keyword, after, limit)

    def get_object(self, object_id: int) -> ObjectDetail:
        return self.engine.get_object(object_id)

    def create_folder(self, dirname: str, basename: str) -> ObjectRecord:
        return self.engine.create_folder(dirname, basename)

    def create_file(
        self,
        local_path: PathLike,
        dirname: str = "",
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ObjectRecord:
        return self.engine.create_file(local_path, dirname, on_progress=on_progress)

    def delete_objects(self, ids: Iterable[int]) -> None:
        self.engine.delete_objects(ids)

    def download_objects(
        self,
        local_path: PathLike,
        dirname: str,
        ids: Iterable[int],
        *,
        on_progress: ProgressCallback | None = None,
    ) -> list[Path]:
        return self.engine.download_objects(local_path, dirname, ids, on_progress=on_progress)

    # endregion

    def close(self) -> None:
        """Close the adapter and the database."""
        self._reset_adapter()
        self._db.close()

    def __enter__(self) -> FileManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
