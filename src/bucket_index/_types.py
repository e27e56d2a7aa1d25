"""Type aliases used throughout bucket_index."""

from __future__ import annotations

import os  # noqa: TC003
from collections.abc import Callable
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from bucket_index._models import Progress

PathLike = Union[str, "os.PathLike[str]"]  # noqa: UP007
ProgressCallback = Callable[["Progress"], None]
