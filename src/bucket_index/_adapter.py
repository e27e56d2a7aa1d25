"""The adapter contract the engine relies on for remote content."""

from __future__ import annotations

import abc
import io
from typing import TYPE_CHECKING, BinaryIO

from bucket_index._models import Progress

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from types import TracebackType

    from bucket_index._models import ObjectHeaders, RemoteContent, RemoteObject
    from bucket_index._types import ProgressCallback

#: Expiry used by :meth:`ObjectStoreAdapter.get_signed_url` when none is given.
DEFAULT_SIGNED_URL_EXPIRY = 15 * 60

CHUNK_SIZE = 1024 * 1024


def stream_size(stream: BinaryIO) -> int | None:
    """Remaining bytes in ``stream`` if it is seekable, else ``None``."""
    try:
        if not stream.seekable():
            return None
        here = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(here)
    except (OSError, AttributeError):
        return None
    return end - here


def copy_stream(
    src: BinaryIO,
    write: Callable[[bytes], object],
    *,
    total: int | None = None,
    on_progress: ProgressCallback | None = None,
    chunk_size: int = CHUNK_SIZE,
) -> int:
    """Copy ``src`` to ``write`` in chunks, reporting cumulative bytes.

    :returns: Number of bytes copied.
    """
    transferred = 0
    while True:
        chunk = src.read(chunk_size)
        if not chunk:
            break
        write(chunk)
        transferred += len(chunk)
        if on_progress is not None:
            on_progress(Progress(current=transferred, total=total if total is not None else transferred))
    return transferred


class ObjectStoreAdapter(abc.ABC):
    """Abstract base class for remote object stores.

    Paths are virtual paths used verbatim as object keys; folder markers are
    the zero-byte objects whose key ends with ``/``. Adapter-native
    exceptions must never leak; they are mapped to ``bucket_index`` errors.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Identifier of the adapter type (e.g. ``'s3'``, ``'local'``)."""

    @abc.abstractmethod
    def head_object(self, path: str) -> ObjectHeaders:
        """Return live metadata of an object.

        :raises NotFound: If the object does not exist.
        """

    @abc.abstractmethod
    def get_object(self, path: str) -> RemoteContent:
        """Open an object for streaming reads.

        :raises NotFound: If the object does not exist.
        """

    @abc.abstractmethod
    def upload(
        self,
        path: str,
        content: BinaryIO,
        *,
        content_type: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Store ``content`` under ``path``, replacing any existing object.

        :param on_progress: Called with cumulative bytes transferred.
        """

    @abc.abstractmethod
    def put_object(self, path: str) -> None:
        """Create a zero-byte marker object (folder placeholder)."""

    @abc.abstractmethod
    def delete_objects(self, paths: Sequence[str]) -> None:
        """Delete objects in order. Missing objects are not an error."""

    @abc.abstractmethod
    def get_signed_url(self, path: str, *, expires_in: int | None = None) -> str:
        """Return a time-limited read URL.

        :param expires_in: Lifetime in seconds; :data:`DEFAULT_SIGNED_URL_EXPIRY` if ``None``.
        """

    @abc.abstractmethod
    def list_objects(self) -> Iterator[RemoteObject]:
        """Yield every object of the bucket, folder markers included."""

    def close(self) -> None:  # noqa: B027
        """Release resources. Default is a no-op."""

    def __enter__(self) -> ObjectStoreAdapter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
