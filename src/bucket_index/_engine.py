"""SyncEngine: keeps the object index and the remote store consistent.

The index is the source of truth for hierarchy, the remote store for
content. Every operation validates against the index before touching the
remote store, and every remote failure during file creation is compensated
by removing the provisional record.
"""

from __future__ import annotations

import logging
import mimetypes
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from bucket_index._adapter import copy_stream
from bucket_index._errors import Conflict, DuplicatePath, InvalidPath, NotFound
from bucket_index._filters import and_, eq, gt, like, not_like, or_, starts_with
from bucket_index._index import LISTING_ORDER
from bucket_index._keyword import like_pattern, parse_keyword
from bucket_index._models import (
    NewObject,
    ObjectDetail,
    ObjectPage,
    ObjectType,
    Progress,
    StorageClass,
)
from bucket_index._path import (
    ancestors,
    folder_of,
    is_folder_path,
    join_path,
    normalize_dirname,
    path_depth,
    relative_to,
    validate_name,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from bucket_index._adapter import ObjectStoreAdapter
    from bucket_index._filters import Filter
    from bucket_index._index import ObjectIndex
    from bucket_index._models import ObjectRecord
    from bucket_index._types import PathLike, ProgressCallback

log = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
IMAGE_URL_EXPIRY = 60 * 60
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _unique(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(int(i) for i in ids))


def _is_valid_key(path: str) -> bool:
    stripped = path[:-1] if is_folder_path(path) else path
    return bool(stripped) and all(seg and seg not in (".", "..") for seg in stripped.split("/"))


def _weighted(on_progress: ProgressCallback | None, position: int, count: int) -> ProgressCallback | None:
    """Scale one file's byte progress into its ``1 / count`` share of the whole."""
    if on_progress is None:
        return None

    def report(progress: Progress) -> None:
        on_progress(Progress(current=(position + progress.ratio) / count, total=1.0))

    return report


def guess_content_type(name: str) -> str:
    """Content type for ``name`` based on its extension."""
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


class SyncEngine:
    """Orchestrates index and remote store operations.

    The engine holds no state of its own beyond its collaborators; each call
    re-reads the index.

    :param index: The local object index.
    :param adapter: The remote object store.
    """

    def __init__(self, index: ObjectIndex, adapter: ObjectStoreAdapter) -> None:
        self._index = index
        self._adapter = adapter

    def __repr__(self) -> str:
        return f"SyncEngine(index={self._index!r}, adapter={self._adapter!r})"

    @property
    def adapter(self) -> ObjectStoreAdapter:
        return self._adapter

    # region: helpers

    def _require_all(self, ids: Sequence[int]) -> list[ObjectRecord]:
        """Fetch ``ids`` or fail before any mutation if one is missing."""
        objects = self._index.get_many(ids)
        if len(objects) != len(ids):
            found = {o.id for o in objects}
            missing = tuple(i for i in ids if i not in found)
            raise NotFound(f"Objects not found: {', '.join(map(str, missing))}", ids=missing)
        return objects

    def _require_parent(self, dirname: str) -> None:
        if not dirname:
            return
        parent = self._index.find_one(and_(eq("type", ObjectType.FOLDER), eq("path", folder_of(dirname))))
        if parent is None:
            raise NotFound(f'Parent folder not found: "{dirname}"', path=dirname)

    def _insert(self, obj: NewObject) -> ObjectRecord:
        try:
            return self._index.insert(obj)
        except DuplicatePath as exc:
            raise Conflict.duplicated(obj.path) from exc

    def _descendants(self, folder: ObjectRecord, object_type: ObjectType | None = None) -> list[ObjectRecord]:
        """The folder itself and everything below it, optionally of one type."""
        where = starts_with("path", folder.path)
        if object_type is not None:
            where = and_(where, eq("type", object_type))
        return self._index.find_all(where, order=(("path", "ASC"), ("id", "ASC")))

    def _delete_batch(self, records: Sequence[ObjectRecord]) -> None:
        """Delete remote objects and index records as two concurrent tasks.

        Both tasks are awaited; the first failure is raised and the other task
        is not rolled back.
        """
        paths = [r.path for r in records]
        ids = [r.id for r in records]
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="bucket-index-delete") as pool:
            remote = pool.submit(self._adapter.delete_objects, paths)
            self._index.destroy_many(ids)
            remote.result()

    # endregion

    # region: queries

    def get_objects(
        self,
        dirname: str = "",
        keyword: str | None = None,
        after: int | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> ObjectPage:
        """List one page of objects.

        Without a keyword only direct children of ``dirname`` are listed.
        With a keyword every descendant of ``dirname`` whose path matches is
        listed. ``after`` resumes the listing behind the object with that id.

        :raises NotFound: If ``after`` names a missing object.
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        dirname = normalize_dirname(dirname)
        parsed = parse_keyword(keyword)
        conditions: list[Filter | None] = []

        if parsed:
            conditions.extend(like("path", like_pattern(term)) for term in parsed.plus)
            conditions.extend(not_like("path", like_pattern(term)) for term in parsed.minus)
            if dirname:
                conditions.append(or_(eq("dirname", dirname), starts_with("dirname", dirname + "/")))
        else:
            conditions.append(eq("dirname", dirname))

        if after is not None:
            cursor = self._index.get(after)
            if cursor is None:
                raise NotFound(f"Object not found: {after}", ids=(after,))
            conditions.append(
                or_(
                    gt("type", cursor.type),
                    and_(eq("type", cursor.type), gt("basename", cursor.basename)),
                    and_(eq("type", cursor.type), eq("basename", cursor.basename), gt("id", cursor.id)),
                )
            )

        rows = self._index.find_all(and_(*conditions), order=LISTING_ORDER, limit=limit + 1)
        return ObjectPage(items=rows[:limit], has_next_page=len(rows) > limit)

    def get_object(self, object_id: int) -> ObjectDetail:
        """Return a record with live remote headers.

        Images get a one-hour signed URL, videos one with the adapter's default
        expiry.

        :raises NotFound: If the record or its remote object is missing.
        """
        record = self._index.get(object_id)
        if record is None:
            raise NotFound(f"Object not found: {object_id}", ids=(object_id,))
        headers = self._adapter.head_object(record.path)
        content_type = headers.content_type or ""
        url = None
        if content_type.startswith("image/"):
            url = self._adapter.get_signed_url(record.path, expires_in=IMAGE_URL_EXPIRY)
        elif content_type.startswith("video/"):
            url = self._adapter.get_signed_url(record.path)
        return ObjectDetail(record=record, headers=headers, url=url)

    # endregion

    # region: creation

    def create_folder(self, dirname: str, basename: str) -> ObjectRecord:
        """Create a folder record, then its remote marker.

        :raises InvalidPath: If ``basename`` is not a usable name.
        :raises NotFound: If the parent folder does not exist.
        :raises Conflict: If the path is already taken; no remote call is made.
        """
        dirname = normalize_dirname(dirname)
        obj = NewObject(type=ObjectType.FOLDER, path=join_path(dirname, validate_name(basename), folder=True))
        self._require_parent(dirname)
        record = self._insert(obj)
        self._adapter.put_object(record.path)
        log.info("Created folder %s (id=%d)", record.path, record.id)
        return record

    def create_file(
        self,
        local_path: PathLike,
        dirname: str = "",
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ObjectRecord:
        """Upload a local file into ``dirname``.

        A provisional record is inserted first; it is completed with the
        remote size and modification time after the upload, or removed if the
        upload or the follow-up head fails.

        :param on_progress: Receives cumulative uploaded bytes.
        :raises NotFound: If the local file or the parent folder does not exist.
        :raises Conflict: If the path is already taken; nothing is uploaded.
        """
        source = Path(local_path)
        if not source.is_file():
            raise NotFound(f"Local file not found: {source}", path=str(source))
        basename = validate_name(source.name)
        dirname = normalize_dirname(dirname)
        obj = NewObject(
            type=ObjectType.FILE,
            path=join_path(dirname, basename),
            storage_class=StorageClass.STANDARD,
        )
        self._require_parent(dirname)
        record = self._insert(obj)

        try:
            with source.open("rb") as content:
                self._adapter.upload(
                    record.path,
                    content,
                    content_type=guess_content_type(basename),
                    on_progress=on_progress,
                )
            headers = self._adapter.head_object(record.path)
            record = self._index.update(
                record.id,
                size=headers.content_length,
                last_modified=headers.last_modified,
            )
        except BaseException:
            log.warning("Upload of %s failed, removing provisional record %d", record.path, record.id)
            self._index.destroy_many([record.id])
            raise

        log.info("Uploaded %s (id=%d, %s bytes)", record.path, record.id, record.size)
        return record

    # endregion

    # region: bulk operations

    def delete_objects(self, ids: Iterable[int]) -> None:
        """Delete objects; folders take all their descendants with them.

        All ids are validated before anything is deleted. Files go first, then
        folder markers, deepest first.

        :raises NotFound: If any id is missing; nothing is deleted.
        """
        id_list = _unique(ids)
        objects = self._require_all(id_list)

        files: dict[int, ObjectRecord] = {}
        folders: dict[int, ObjectRecord] = {}
        # One folder expansion at a time.
        for obj in objects:
            if obj.type is ObjectType.FILE:
                files[obj.id] = obj
                continue
            for descendant in self._descendants(obj):
                target = files if descendant.type is ObjectType.FILE else folders
                target[descendant.id] = descendant

        if files:
            self._delete_batch(list(files.values()))
        if folders:
            self._delete_batch(sorted(folders.values(), key=lambda f: path_depth(f.path), reverse=True))
        log.info("Deleted %d file(s) and %d folder(s)", len(files), len(folders))

    def download_objects(
        self,
        local_path: PathLike,
        dirname: str,
        ids: Iterable[int],
        *,
        on_progress: ProgressCallback | None = None,
    ) -> list[Path]:
        """Download files, and every file below selected folders, into ``local_path``.

        Destinations keep the structure below ``dirname``. Files transfer one
        at a time; progress is the overall fraction done, each file weighing
        ``1 / file count`` and advancing with its bytes.

        :returns: The written local paths, in transfer order.
        :raises NotFound: If any id is missing; nothing is downloaded.
        :raises InvalidPath: If a destination would fall outside ``local_path``.
        """
        id_list = _unique(ids)
        objects = self._require_all(id_list)
        dirname = normalize_dirname(dirname)
        root = Path(local_path).resolve()

        files: dict[int, ObjectRecord] = {}
        for obj in objects:
            if obj.type is ObjectType.FILE:
                files[obj.id] = obj
                continue
            for descendant in self._descendants(obj, ObjectType.FILE):
                files[descendant.id] = descendant

        count = len(files)
        written: list[Path] = []
        for position, record in enumerate(files.values()):
            target = self._destination(root, relative_to(record.path, dirname))
            self._download_one(record, target, position, count, on_progress)
            written.append(target)
        log.info("Downloaded %d file(s) to %s", count, root)
        return written

    def _destination(self, root: Path, relative: str) -> Path:
        target = (root / relative).resolve()
        try:
            target.relative_to(root)
        except ValueError:
            raise InvalidPath(f"Destination escapes {root}: {relative}", path=relative) from None
        return target

    def _download_one(
        self,
        record: ObjectRecord,
        target: Path,
        position: int,
        count: int,
        on_progress: ProgressCallback | None,
    ) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        content = self._adapter.get_object(record.path)
        try:
            with content.stream as stream, target.open("wb") as out:
                copy_stream(
                    stream,
                    out.write,
                    total=content.content_length,
                    on_progress=_weighted(on_progress, position, count),
                )
        except BaseException:
            target.unlink(missing_ok=True)
            raise
        if on_progress is not None and content.content_length == 0:
            on_progress(Progress(current=(position + 1) / count, total=1.0))
        log.debug("Downloaded %s -> %s", record.path, target)

    # endregion

    # region: resync

    def sync_objects_from_s3(self) -> tuple[int, int]:
        """Rebuild the index from the live bucket listing.

        Folder records are created for marker keys and for every implied
        parent prefix. Records whose path still exists keep their id.

        :returns: ``(indexed, removed)`` counts.
        """
        objects: dict[str, NewObject] = {}
        for remote in self._adapter.list_objects():
            if not _is_valid_key(remote.path):
                log.warning("Skipping unindexable key %r", remote.path)
                continue
            for folder in ancestors(remote.path):
                objects.setdefault(folder, NewObject(type=ObjectType.FOLDER, path=folder))
            if is_folder_path(remote.path):
                objects.setdefault(remote.path, NewObject(type=ObjectType.FOLDER, path=remote.path))
            else:
                objects[remote.path] = NewObject(
                    type=ObjectType.FILE,
                    path=remote.path,
                    size=remote.size,
                    storage_class=StorageClass.parse(remote.storage_class),
                    last_modified=remote.last_modified,
                )
        indexed, removed = self._index.reconcile(objects.values())
        log.info("Resynced index from %s: %d object(s) indexed, %d removed", self._adapter.name, indexed, removed)
        return indexed, removed

    # endregion
