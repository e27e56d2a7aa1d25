"""Shared test fixtures and marker registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from bucket_index._db import Database
from bucket_index._engine import SyncEngine
from bucket_index._index import ObjectIndex
from bucket_index.adapters._local import LocalAdapter

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


def pytest_configure(config: object) -> None:
    """Register custom markers."""
    if isinstance(config, pytest.Config):
        config.addinivalue_line("markers", "integration: requires external services")


@pytest.fixture
def db() -> Iterator[Database]:
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def index(db: Database) -> ObjectIndex:
    return ObjectIndex(db)


@pytest.fixture
def bucket_dir(tmp_path: Path) -> Path:
    return tmp_path / "bucket"


@pytest.fixture
def adapter(bucket_dir: Path) -> LocalAdapter:
    return LocalAdapter(root=str(bucket_dir))


@pytest.fixture
def engine(index: ObjectIndex, adapter: LocalAdapter) -> SyncEngine:
    return SyncEngine(index, adapter)


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Create a local source file with the given name and content."""
    source_dir = tmp_path / "sources"

    def _make(name: str, content: bytes = b"data") -> Path:
        source_dir.mkdir(exist_ok=True)
        path = source_dir / name
        path.write_bytes(content)
        return path

    return _make
