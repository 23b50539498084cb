"""Services package."""

from carihesap.services.storage import (
    AccountRepository,
    FileKeyValueStore,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    SnapshotDecodeError,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "AccountRepository",
    "FileKeyValueStore",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SnapshotDecodeError",
    "StorageConnectionError",
    "StorageError",
]
