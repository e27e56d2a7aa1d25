"""S3-compatible object store adapter using s3fs."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, BinaryIO

from bucket_index._adapter import DEFAULT_SIGNED_URL_EXPIRY, ObjectStoreAdapter, copy_stream, stream_size
from bucket_index._errors import BackendUnavailable, BucketIndexError, NotFound, PermissionDenied
from bucket_index._models import ObjectHeaders, RemoteContent, RemoteObject

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from bucket_index._types import ProgressCallback

log = logging.getLogger(__name__)

# DeleteObjects accepts at most 1000 keys per request.
_DELETE_BATCH = 1000


def _as_utc(value: Any) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value is None:
        return datetime.now(tz=timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class S3Adapter(ObjectStoreAdapter):
    """Adapter for any S3-compatible endpoint.

    Keys are used verbatim, so folder markers keep their trailing slash;
    marker-sensitive calls go through the raw client (``call_s3``) instead of
    the path-normalizing filesystem helpers.

    :param bucket: Bucket name (required, non-empty).
    :param endpoint_url: Custom endpoint URL (e.g. for MinIO).
    :param key: Access key id.
    :param secret: Secret access key.
    :param region_name: Region name.
    :param client_options: Additional options passed to s3fs.
    """

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: str | None = None,
        key: str | None = None,
        secret: str | None = None,
        region_name: str | None = None,
        client_options: dict[str, Any] | None = None,
    ) -> None:
        if not bucket or not bucket.strip():
            raise ValueError("bucket must be a non-empty string")
        self._bucket = bucket
        self._endpoint_url = endpoint_url
        self._key = key
        self._secret = secret
        self._region_name = region_name
        self._client_options = client_options or {}
        self._fs_instance: Any = None

    def __repr__(self) -> str:
        return f"S3Adapter(bucket={self._bucket!r}, endpoint_url={self._endpoint_url!r})"

    @property
    def name(self) -> str:
        return "s3"

    @property
    def bucket(self) -> str:
        return self._bucket

    # region: lazy filesystem

    @property
    def _fs(self) -> Any:
        if self._fs_instance is None:
            import s3fs  # type: ignore[import-untyped]

            opts: dict[str, Any] = dict(self._client_options)
            if self._endpoint_url is not None:
                opts["endpoint_url"] = self._endpoint_url
            if self._key is not None:
                opts["key"] = self._key
            if self._secret is not None:
                opts["secret"] = self._secret
            if self._region_name is not None:
                client_kwargs: dict[str, Any] = opts.setdefault("client_kwargs", {})
                client_kwargs["region_name"] = self._region_name
            opts.setdefault("anon", False)
            # Instances must not be shared: a settings change builds a new adapter.
            opts.setdefault("skip_instance_cache", True)
            self._fs_instance = s3fs.S3FileSystem(**opts)
        return self._fs_instance

    def _s3_path(self, path: str) -> str:
        return f"{self._bucket}/{path}"

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, path: str = "") -> Iterator[None]:
        """Map s3fs/botocore exceptions to bucket_index errors."""
        try:
            yield
        except BucketIndexError:
            raise
        except FileNotFoundError:
            raise NotFound(f"Object not found: {path}", path=path, backend=self.name) from None
        except PermissionError:
            raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from None
        except Exception as exc:
            raise self._classify_error(exc, path) from exc

    def _classify_error(self, exc: Exception, path: str) -> BucketIndexError:
        """Classify an unknown exception into a bucket_index error type."""
        msg = str(exc).lower()
        if "404" in msg or "nosuchkey" in msg or "nosuchbucket" in msg or "not found" in msg:
            return NotFound(f"Object not found: {path}", path=path, backend=self.name)
        if "403" in msg or "accessdenied" in msg or "access denied" in msg:
            return PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name)
        if any(kw in msg for kw in ("endpoint", "connect", "timeout", "dns", "name or service")):
            return BackendUnavailable(str(exc), path=path, backend=self.name)
        return BucketIndexError(str(exc), path=path, backend=self.name)

    # endregion

    # region: metadata and reads

    def head_object(self, path: str) -> ObjectHeaders:
        with self._errors(path):
            out = self._fs.call_s3("head_object", Bucket=self._bucket, Key=path)
        known = {"ContentType", "ContentLength", "LastModified", "ETag", "StorageClass", "ResponseMetadata"}
        return ObjectHeaders(
            content_type=out.get("ContentType"),
            content_length=int(out.get("ContentLength", 0) or 0),
            last_modified=_as_utc(out.get("LastModified")),
            etag=out.get("ETag"),
            storage_class=out.get("StorageClass"),
            extra={k: v for k, v in out.items() if k not in known},
        )

    def get_object(self, path: str) -> RemoteContent:
        with self._errors(path):
            stream = self._fs.open(self._s3_path(path), "rb")
            return RemoteContent(stream=stream, content_length=int(stream.size))

    def get_signed_url(self, path: str, *, expires_in: int | None = None) -> str:
        expires = expires_in if expires_in is not None else DEFAULT_SIGNED_URL_EXPIRY
        with self._errors(path):
            return str(self._fs.url(self._s3_path(path), expires=expires))

    def _list_page(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        """Fetch one listing page, retrying transient endpoint failures."""
        from tenacity import (
            before_sleep_log,
            retry,
            retry_if_exception_type,
            stop_after_attempt,
            wait_exponential,
        )

        @retry(
            retry=retry_if_exception_type(BackendUnavailable),
            stop=stop_after_attempt(3),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            before_sleep=before_sleep_log(log, logging.WARNING),  # type: ignore[arg-type,unused-ignore]
            reraise=True,
        )
        def _fetch() -> dict[str, Any]:
            with self._errors(""):
                return dict(self._fs.call_s3("list_objects_v2", **kwargs))

        return _fetch()

    def list_objects(self) -> Iterator[RemoteObject]:
        token: str | None = None
        while True:
            kwargs: dict[str, Any] = {"Bucket": self._bucket}
            if token:
                kwargs["ContinuationToken"] = token
            page = self._list_page(kwargs)
            for item in page.get("Contents", []):
                yield RemoteObject(
                    path=item["Key"],
                    size=int(item.get("Size", 0) or 0),
                    last_modified=_as_utc(item.get("LastModified")),
                    storage_class=item.get("StorageClass"),
                )
            if not page.get("IsTruncated"):
                return
            token = page.get("NextContinuationToken")

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
        extra: dict[str, Any] = {}
        if content_type:
            extra["ContentType"] = content_type
        total = stream_size(content)
        with self._errors(path):
            with self._fs.open(self._s3_path(path), "wb", **extra) as remote:
                copy_stream(content, remote.write, total=total, on_progress=on_progress)
        log.debug("Uploaded s3://%s/%s", self._bucket, path)

    def put_object(self, path: str) -> None:
        with self._errors(path):
            self._fs.call_s3("put_object", Bucket=self._bucket, Key=path, Body=b"")
            self._fs.invalidate_cache(self._s3_path(path))

    def delete_objects(self, paths: Sequence[str]) -> None:
        keys = list(paths)
        for start in range(0, len(keys), _DELETE_BATCH):
            batch = keys[start : start + _DELETE_BATCH]
            with self._errors(batch[0]):
                out = self._fs.call_s3(
                    "delete_objects",
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            errors = out.get("Errors") or []
            if errors:
                first = errors[0]
                raise self._classify_error(
                    Exception(f"{first.get('Code')}: {first.get('Message')}"), first.get("Key", "")
                )
        self._fs.invalidate_cache()

    # endregion

    # region: lifecycle

    def close(self) -> None:
        if self._fs_instance is not None:
            self._fs_instance.clear_instance_cache()
            self._fs_instance = None

    # endregion
