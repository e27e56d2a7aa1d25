"""Virtual path helpers.

A virtual path is the slash-delimited key of an object. Folder paths end with
``/``, file paths never do. ``dirname`` is the parent portion without a
trailing slash (empty at root) and ``basename`` is the final segment.
"""

from __future__ import annotations

from bucket_index._errors import InvalidPath

FOLDER_SUFFIX = "/"


def validate_name(name: str) -> str:
    """Return ``name`` if it is usable as a single path segment.

    :raises InvalidPath: If the name is empty, a dot segment, or contains a
        separator or null byte.
    """
    if not name:
        raise InvalidPath("Name must not be empty", path=name)
    if "\0" in name:
        raise InvalidPath("Name contains null byte", path=name)
    if "/" in name or "\\" in name:
        raise InvalidPath("Name must not contain a path separator", path=name)
    if name in (".", ".."):
        raise InvalidPath("Name must not be a dot segment", path=name)
    return name


def normalize_dirname(raw: str | None) -> str:
    """Normalize a directory argument to ``a/b`` form (empty string for root).

    Backslashes become forward slashes, empty and ``.`` segments are dropped.

    :raises InvalidPath: If the directory contains a ``..`` segment or null byte.
    """
    if not raw:
        return ""
    if "\0" in raw:
        raise InvalidPath("Path contains null byte", path=raw)
    parts: list[str] = []
    for segment in raw.replace("\\", "/").split("/"):
        if segment == "" or segment == ".":
            continue
        if segment == "..":
            raise InvalidPath("Path contains '..' segment", path=raw)
        parts.append(segment)
    return "/".join(parts)


def join_path(dirname: str, basename: str, *, folder: bool = False) -> str:
    """Build the virtual path of ``basename`` inside ``dirname``."""
    path = f"{dirname}/{basename}" if dirname else basename
    return path + FOLDER_SUFFIX if folder else path


def is_folder_path(path: str) -> bool:
    return path.endswith(FOLDER_SUFFIX)


def split_path(path: str) -> tuple[str, str]:
    """Split a virtual path into ``(dirname, basename)``.

    Example: ``split_path("a/b/")`` returns ``("a", "b")`` and
    ``split_path("c.txt")`` returns ``("", "c.txt")``.
    """
    stripped = path[:-1] if is_folder_path(path) else path
    if "/" not in stripped:
        return "", stripped
    dirname, basename = stripped.rsplit("/", 1)
    return dirname, basename


def folder_of(dirname: str) -> str:
    """Return the folder path whose record must exist for ``dirname``."""
    return dirname + FOLDER_SUFFIX


def path_depth(path: str) -> int:
    """Number of separators in ``path``; deeper folders sort first on delete."""
    return path.count("/")


def ancestors(path: str) -> list[str]:
    """Folder paths of every ancestor of ``path``, shallowest first.

    Example: ``ancestors("a/b/c.txt")`` returns ``["a/", "a/b/"]``.
    """
    dirname, _ = split_path(path)
    if not dirname:
        return []
    parts = dirname.split("/")
    return ["/".join(parts[: i + 1]) + FOLDER_SUFFIX for i in range(len(parts))]


def relative_to(path: str, dirname: str) -> str:
    """Strip ``dirname`` from the front of ``path`` when it is an ancestor.

    Paths outside ``dirname`` are returned unchanged.
    """
    if not dirname:
        return path
    prefix = dirname + "/"
    if path.startswith(prefix):
        return path[len(prefix) :]
    return path
