"""Immutable records exchanged between the index, the adapters and callers."""

from __future__ import annotations

import dataclasses
import enum
import logging
from typing import TYPE_CHECKING, Any

from bucket_index._path import split_path

if TYPE_CHECKING:
    from datetime import datetime
    from typing import BinaryIO

log = logging.getLogger(__name__)


class ObjectType(enum.IntEnum):
    """Kind of an indexed object.

    The integer values are the listing sort key: folders list before files.
    """

    FOLDER = 0
    FILE = 1


class StorageClass(enum.Enum):
    STANDARD = "STANDARD"
    REDUCED_REDUNDANCY = "REDUCED_REDUNDANCY"
    STANDARD_IA = "STANDARD_IA"
    ONEZONE_IA = "ONEZONE_IA"
    INTELLIGENT_TIERING = "INTELLIGENT_TIERING"
    GLACIER = "GLACIER"
    GLACIER_IR = "GLACIER_IR"
    DEEP_ARCHIVE = "DEEP_ARCHIVE"
    OUTPOSTS = "OUTPOSTS"
    SNOW = "SNOW"
    EXPRESS_ONEZONE = "EXPRESS_ONEZONE"

    @classmethod
    def parse(cls, value: str | None) -> StorageClass:
        """Map a remote storage class header to a member, defaulting to ``STANDARD``."""
        if not value:
            return cls.STANDARD
        try:
            return cls(value)
        except ValueError:
            log.debug("Unknown storage class %r, recording as STANDARD", value)
            return cls.STANDARD


@dataclasses.dataclass(frozen=True)
class ObjectRecord:
    """A persisted row of the object index.

    :param id: Surrogate key, assigned on insert in increasing order.
    :param type: Folder or file.
    :param path: Full virtual path; folders end with ``/``.
    :param dirname: Parent portion of ``path`` without trailing slash.
    :param basename: Final segment of ``path``.
    :param size: Content length in bytes (files only, once uploaded).
    :param storage_class: Remote storage class (files only).
    :param last_modified: Remote modification time (files only, once uploaded).
    :param created_at: Set by the index on insert.
    :param updated_at: Set by the index on every write.
    """

    id: int
    type: ObjectType
    path: str
    dirname: str
    basename: str
    size: int | None = None
    storage_class: StorageClass | None = None
    last_modified: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_folder(self) -> bool:
        return self.type is ObjectType.FOLDER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.name,
            "path": self.path,
            "dirname": self.dirname,
            "basename": self.basename,
            "size": self.size,
            "storage_class": self.storage_class.value if self.storage_class else None,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclasses.dataclass(frozen=True)
class NewObject:
    """Values for a record that has not been inserted yet.

    ``dirname`` and ``basename`` are derived from ``path``.
    """

    type: ObjectType
    path: str
    size: int | None = None
    storage_class: StorageClass | None = None
    last_modified: datetime | None = None

    @property
    def dirname(self) -> str:
        return split_path(self.path)[0]

    @property
    def basename(self) -> str:
        return split_path(self.path)[1]


@dataclasses.dataclass(frozen=True)
class ObjectPage:
    """One page of a listing.

    :param items: Records in listing order.
    :param has_next_page: Whether a further page exists after the last item.
    """

    items: list[ObjectRecord]
    has_next_page: bool

    @property
    def cursor(self) -> int | None:
        """Id to pass as ``after`` for the next page."""
        return self.items[-1].id if self.items else None


@dataclasses.dataclass(frozen=True)
class ObjectHeaders:
    """Live metadata of a remote object.

    :param content_type: MIME type reported by the store.
    :param content_length: Size in bytes.
    :param last_modified: Modification time reported by the store.
    :param etag: Entity tag, if reported.
    :param storage_class: Storage class header, if reported.
    :param extra: Any other header the adapter exposes.
    """

    content_type: str | None
    content_length: int
    last_modified: datetime
    etag: str | None = None
    storage_class: str | None = None
    extra: dict[str, object] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class ObjectDetail:
    """A record enriched with live remote headers and an optional signed URL."""

    record: ObjectRecord
    headers: ObjectHeaders
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = self.record.to_dict()
        if self.url is not None:
            result["url"] = self.url
        result["object_headers"] = {
            "content_type": self.headers.content_type,
            "content_length": self.headers.content_length,
            "last_modified": self.headers.last_modified.isoformat(),
            "etag": self.headers.etag,
            "storage_class": self.headers.storage_class,
        }
        return result


@dataclasses.dataclass(frozen=True)
class RemoteObject:
    """One key of the live bucket listing."""

    path: str
    size: int
    last_modified: datetime | None = None
    storage_class: str | None = None


@dataclasses.dataclass(frozen=True)
class RemoteContent:
    """Readable remote content.

    :param stream: Binary stream; the caller closes it.
    :param content_length: Total size in bytes.
    """

    stream: BinaryIO
    content_length: int


@dataclasses.dataclass(frozen=True)
class Progress:
    """A progress notification.

    :param current: Work done so far (bytes, or a fraction of ``total``).
    :param total: Work expected in total.
    """

    current: float
    total: float

    @property
    def ratio(self) -> float:
        if not self.total:
            return 1.0
        return min(self.current / self.total, 1.0)


@dataclasses.dataclass(frozen=True)
class Settings:
    """Persisted S3 connection settings (singleton record).

    The secret is write-only from the caller's point of view: it is never
    included in :meth:`to_dict` or ``repr``.
    """

    access_key_id: str | None = None
    secret_access_key: str | None = dataclasses.field(default=None, repr=False)
    region: str | None = None
    bucket: str | None = None
    endpoint: str | None = None
    updated_at: datetime | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.bucket)

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_key_id": self.access_key_id,
            "region": self.region,
            "bucket": self.bucket,
            "endpoint": self.endpoint,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
