"""Configuration model: immutable data describing which adapter to build."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from bucket_index._errors import BackendUnavailable

if TYPE_CHECKING:
    from bucket_index._models import Settings


@dataclasses.dataclass(frozen=True)
class AdapterConfig:
    """Describes an adapter instance.

    :param type: Adapter type identifier (e.g. ``"s3"``, ``"local"``).
    :param options: Keyword arguments for the adapter constructor.
    """

    type: str
    options: dict[str, object] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> AdapterConfig:
        """Construct from a plain dict (e.g. parsed TOML/JSON).

        :param data: Dict with a ``type`` key and optional ``options`` dict.
        """
        if "type" not in data:
            raise TypeError("Adapter config requires a 'type' key")
        options = data.get("options", {})
        if not isinstance(options, dict):
            msg = "Adapter 'options' must be a dict"
            raise TypeError(msg)
        return cls(type=str(data["type"]), options=dict(options))

    @classmethod
    def from_settings(cls, settings: Settings | None) -> AdapterConfig:
        """Derive an S3 adapter config from the stored settings.

        :raises BackendUnavailable: If no bucket has been configured.
        """
        if settings is None or not settings.is_configured:
            raise BackendUnavailable("S3 settings are not configured", backend="s3")
        options: dict[str, object] = {"bucket": settings.bucket}
        if settings.endpoint:
            options["endpoint_url"] = settings.endpoint
        if settings.access_key_id:
            options["key"] = settings.access_key_id
        if settings.secret_access_key:
            options["secret"] = settings.secret_access_key
        if settings.region:
            options["region_name"] = settings.region
        return cls(type="s3", options=options)
