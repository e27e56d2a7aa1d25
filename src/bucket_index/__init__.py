"""Local object index mirroring an S3-compatible bucket."""

from bucket_index._adapter import DEFAULT_SIGNED_URL_EXPIRY, ObjectStoreAdapter
from bucket_index._config import AdapterConfig
from bucket_index._db import Database
from bucket_index._engine import SyncEngine
from bucket_index._errors import (
    BackendUnavailable,
    BucketIndexError,
    Conflict,
    DuplicatePath,
    FrontendOperation,
    FrontendOperationCode,
    InvalidPath,
    NotFound,
    PermissionDenied,
)
from bucket_index._index import LISTING_ORDER, ObjectIndex
from bucket_index._keyword import Keyword, like_pattern, parse_keyword
from bucket_index._manager import FileManager
from bucket_index._models import (
    NewObject,
    ObjectDetail,
    ObjectHeaders,
    ObjectPage,
    ObjectRecord,
    ObjectType,
    Progress,
    RemoteContent,
    RemoteObject,
    Settings,
    StorageClass,
)
from bucket_index._registry import create_adapter, register_adapter
from bucket_index._settings import MAIN_SETTINGS_ID, SettingsStore

__version__ = "0.1.0"

__all__ = [
    # Core
    "FileManager",
    "SyncEngine",
    "ObjectIndex",
    "SettingsStore",
    "Database",
    "LISTING_ORDER",
    "MAIN_SETTINGS_ID",
    # Adapters
    "ObjectStoreAdapter",
    "AdapterConfig",
    "create_adapter",
    "register_adapter",
    "DEFAULT_SIGNED_URL_EXPIRY",
    # Keywords
    "Keyword",
    "parse_keyword",
    "like_pattern",
    # Models
    "NewObject",
    "ObjectRecord",
    "ObjectType",
    "StorageClass",
    "ObjectPage",
    "ObjectDetail",
    "ObjectHeaders",
    "RemoteObject",
    "RemoteContent",
    "Progress",
    "Settings",
    # Errors
    "BucketIndexError",
    "NotFound",
    "Conflict",
    "DuplicatePath",
    "FrontendOperation",
    "FrontendOperationCode",
    "PermissionDenied",
    "InvalidPath",
    "BackendUnavailable",
    # Version
    "__version__",
]
