"""Disk-resident named sets of serializable values backed by SQLite."""

from .cancellation import CancelToken
from .codec import ElementCodec, identity_extractor, keyed_extractor
from .config import ReaderSettings, StorageSettings, StoreConfig
from .errors import (
    BackingStoreError,
    BigsetError,
    CancellationError,
    EncodingError,
    StoreClosedError,
    ValidationError,
)
from .store import SetStore, create

__all__ = [
    "BackingStoreError",
    "BigsetError",
    "CancelToken",
    "CancellationError",
    "ElementCodec",
    "EncodingError",
    "ReaderSettings",
    "SetStore",
    "StorageSettings",
    "StoreClosedError",
    "StoreConfig",
    "ValidationError",
    "create",
    "identity_extractor",
    "keyed_extractor",
]
