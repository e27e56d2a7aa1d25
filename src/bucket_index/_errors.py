"""Normalized error hierarchy for bucket_index."""

from __future__ import annotations

import dataclasses
import enum
from typing import Optional


class BucketIndexError(Exception):
    """Base class for all bucket_index errors.

    :param message: Human-readable error description.
    :param path: The virtual path involved in the error, if any.
    :param backend: The adapter name involved, if any.
    """

    def __init__(self, message: str = "", *, path: Optional[str] = None, backend: Optional[str] = None) -> None:
        self.path = path
        self.backend = backend
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.path is not None:
            parts.append(f"path={self.path!r}")
        if self.backend is not None:
            parts.append(f"backend={self.backend!r}")
        return " | ".join(parts) if len(parts) > 1 else parts[0]

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(super().__str__())]
        if self.path is not None:
            args.append(f"path={self.path!r}")
        if self.backend is not None:
            args.append(f"backend={self.backend!r}")
        return f"{cls}({', '.join(args)})"


class NotFound(BucketIndexError):
    """Raised when an object id, parent folder, cursor or remote key does not exist.

    :param ids: The missing object ids, if the lookup was by id.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        ids: tuple[int, ...] = (),
    ) -> None:
        self.ids = tuple(ids)
        super().__init__(message, path=path, backend=backend)


class FrontendOperationCode(enum.Enum):
    """Signals a caller can turn into a specific prompt."""

    SHOW_OBJECT_DUPLICATED_ALERT = "show-object-duplicated-alert"


@dataclasses.dataclass(frozen=True)
class FrontendOperation:
    """Structured hint attached to a :class:`Conflict`.

    :param code: What the caller should show.
    :param value: The value to show it for (the colliding path).
    """

    code: FrontendOperationCode
    value: str


class Conflict(BucketIndexError):
    """Raised when a new object collides with an existing path.

    :param operation: Structured hint for rendering a duplicate-name alert.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        operation: Optional[FrontendOperation] = None,
    ) -> None:
        self.operation = operation
        super().__init__(message, path=path, backend=backend)

    @classmethod
    def duplicated(cls, path: str) -> Conflict:
        """Build the conflict raised for a duplicate object path."""
        return cls(
            f"Object already exists: {path}",
            path=path,
            operation=FrontendOperation(FrontendOperationCode.SHOW_OBJECT_DUPLICATED_ALERT, path),
        )


class DuplicatePath(BucketIndexError):
    """Raised by the index when an insert collides with an existing path."""


class PermissionDenied(BucketIndexError):
    """Raised when access is denied by the remote store."""


class InvalidPath(BucketIndexError):
    """Raised for malformed or unsafe virtual paths and names."""


class BackendUnavailable(BucketIndexError):
    """Raised when the remote store cannot be reached or is not configured."""
