"""Local filesystem adapter using a directory as the bucket."""

from __future__ import annotations

import errno
import logging
import mimetypes
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from bucket_index._adapter import ObjectStoreAdapter, copy_stream, stream_size
from bucket_index._errors import BucketIndexError, InvalidPath, NotFound, PermissionDenied
from bucket_index._models import ObjectHeaders, RemoteContent, RemoteObject
from bucket_index._path import is_folder_path

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from bucket_index._types import ProgressCallback

log = logging.getLogger(__name__)


class LocalAdapter(ObjectStoreAdapter):
    """Adapter storing objects as files under ``root``.

    Folder markers are directories. Content types are not persisted; they
    are guessed from the file extension on :meth:`head_object`.

    :param root: Directory acting as the bucket; created if missing.
    """

    def __init__(self, root: str) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"LocalAdapter(root={str(self._root)!r})"

    @property
    def name(self) -> str:
        return "local"

    # region: path safety
    def _resolve(self, path: str) -> Path:
        """Resolve a virtual path to a location inside root.

        :raises InvalidPath: If the resolved path escapes the root.
        """
        resolved = (self._root / path).resolve()
        try:
            resolved.relative_to(self._root)
        except ValueError:
            raise InvalidPath(f"Path escapes root directory: {path}", path=path, backend=self.name) from None
        return resolved

    def _key(self, full: Path) -> str:
        return full.relative_to(self._root).as_posix()

    # endregion

    # region: metadata and reads
    def head_object(self, path: str) -> ObjectHeaders:
        full = self._resolve(path)
        if is_folder_path(path):
            if not full.is_dir():
                raise NotFound(f"Object not found: {path}", path=path, backend=self.name)
            st = full.stat()
            return ObjectHeaders(
                content_type="application/x-directory",
                content_length=0,
                last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            )
        if not full.is_file():
            raise NotFound(f"Object not found: {path}", path=path, backend=self.name)
        st = full.stat()
        content_type, _ = mimetypes.guess_type(full.name)
        return ObjectHeaders(
            content_type=content_type or "application/octet-stream",
            content_length=st.st_size,
            last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            storage_class="STANDARD",
        )

    def get_object(self, path: str) -> RemoteContent:
        full = self._resolve(path)
        try:
            stream = full.open("rb")
        except (FileNotFoundError, IsADirectoryError):
            raise NotFound(f"Object not found: {path}", path=path, backend=self.name) from None
        except PermissionError:
            raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from None
        return RemoteContent(stream=stream, content_length=os.fstat(stream.fileno()).st_size)

    def get_signed_url(self, path: str, *, expires_in: int | None = None) -> str:
        """Return a ``file://`` URI; local files carry no signature or expiry."""
        full = self._resolve(path)
        if not full.exists():
            raise NotFound(f"Object not found: {path}", path=path, backend=self.name)
        return full.as_uri()

    def list_objects(self) -> Iterator[RemoteObject]:
        for item in sorted(self._root.rglob("*")):
            st = item.stat()
            modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
            if item.is_dir():
                yield RemoteObject(path=self._key(item) + "/", size=0, last_modified=modified)
            elif item.is_file():
                yield RemoteObject(
                    path=self._key(item),
                    size=st.st_size,
                    last_modified=modified,
                    storage_class="STANDARD",
                )

    # endregion

    # region: writes
    def upload(
        self,
        path: str,
        content: BinaryIO,
        *,
        content_type: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        full = self._resolve(path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(full.parent))
            try:
                with os.fdopen(fd, "wb") as tmp:
                    copy_stream(content, tmp.write, total=stream_size(content), on_progress=on_progress)
                os.replace(tmp_path, str(full))
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except PermissionError:
            raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from None
        log.debug("Stored %s (%s)", path, content_type)

    def put_object(self, path: str) -> None:
        full = self._resolve(path)
        try:
            if is_folder_path(path):
                full.mkdir(parents=True, exist_ok=True)
            else:
                full.parent.mkdir(parents=True, exist_ok=True)
                full.write_bytes(b"")
        except PermissionError:
            raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from None

    def delete_objects(self, paths: Sequence[str]) -> None:
        for path in paths:
            full = self._resolve(path)
            try:
                if is_folder_path(path):
                    full.rmdir()
                else:
                    full.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                    # A marker does not own its contents; unindexed files keep the directory alive.
                    log.debug("Folder %s still has contents, keeping directory", path)
                    continue
                if exc.errno in (errno.EACCES, errno.EPERM):
                    raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from exc
                raise BucketIndexError(f"Cannot delete {path}: {exc.strerror}", path=path, backend=self.name) from exc

    # endregion
