"""Adapter registry: maps type names to adapter classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bucket_index._adapter import ObjectStoreAdapter
    from bucket_index._config import AdapterConfig

# Global adapter factory registry: maps type strings to adapter classes.
_ADAPTER_FACTORIES: dict[str, type[ObjectStoreAdapter]] = {}


def register_adapter(type_name: str, cls: type[ObjectStoreAdapter]) -> None:
    """Register an adapter class for a given type string.

    :param type_name: The type identifier (e.g. ``"s3"``).
    :param cls: The adapter class to instantiate.
    """
    _ADAPTER_FACTORIES[type_name] = cls


def _register_builtin_adapters() -> None:
    """Register the built-in adapters."""
    from bucket_index.adapters._local import LocalAdapter

    if "local" not in _ADAPTER_FACTORIES:
        register_adapter("local", LocalAdapter)
    if "s3" not in _ADAPTER_FACTORIES:
        from bucket_index.adapters._s3 import S3Adapter

        register_adapter("s3", S3Adapter)


def create_adapter(config: AdapterConfig) -> ObjectStoreAdapter:
    """Instantiate a fresh adapter for ``config``.

    :raises ValueError: If the type is unknown or the options are invalid.
    """
    _register_builtin_adapters()
    if config.type not in _ADAPTER_FACTORIES:
        raise ValueError(
            f"Unknown adapter type '{config.type}'. Registered types: {sorted(_ADAPTER_FACTORIES.keys())}"
        )
    factory = _ADAPTER_FACTORIES[config.type]
    try:
        return factory(**config.options)
    except TypeError as exc:
        raise ValueError(
            f"Invalid options for adapter type {config.type!r}: {exc}. "
            f"Provided options: {sorted(config.options.keys())}"
        ) from exc
