"""Tests for the adapter registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from bucket_index._config import AdapterConfig
from bucket_index._registry import _ADAPTER_FACTORIES, create_adapter, register_adapter
from bucket_index.adapters._local import LocalAdapter

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def restore_registry() -> Iterator[None]:
    saved = dict(_ADAPTER_FACTORIES)
    yield
    _ADAPTER_FACTORIES.clear()
    _ADAPTER_FACTORIES.update(saved)


def test_create_local(tmp_path: Path) -> None:
    adapter = create_adapter(AdapterConfig(type="local", options={"root": str(tmp_path)}))
    assert isinstance(adapter, LocalAdapter)
    assert adapter.name == "local"


def test_each_call_builds_a_fresh_adapter(tmp_path: Path) -> None:
    config = AdapterConfig(type="local", options={"root": str(tmp_path)})
    assert create_adapter(config) is not create_adapter(config)


def test_builtins_registered(tmp_path: Path) -> None:
    create_adapter(AdapterConfig(type="local", options={"root": str(tmp_path)}))
    assert {"local", "s3"} <= set(_ADAPTER_FACTORIES)


def test_unknown_type() -> None:
    with pytest.raises(ValueError, match="Unknown adapter type 'ftp'"):
        create_adapter(AdapterConfig(type="ftp"))


def test_invalid_options() -> None:
    with pytest.raises(ValueError, match="Invalid options"):
        create_adapter(AdapterConfig(type="local", options={"nope": 1}))


@pytest.mark.usefixtures("restore_registry")
def test_register_custom(tmp_path: Path) -> None:
    class CustomAdapter(LocalAdapter):
        @property
        def name(self) -> str:
            return "custom"

    register_adapter("custom", CustomAdapter)
    adapter = create_adapter(AdapterConfig(type="custom", options={"root": str(tmp_path)}))
    assert adapter.name == "custom"
