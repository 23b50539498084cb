"""
Storage Services Package

Provides the key-value store interface, its backends, and the repository
that keeps the account collection in it.
"""

from carihesap.services.storage.interface import (
    KeyValueStore,
    SnapshotDecodeError,
    StorageConnectionError,
    StorageError,
)
from carihesap.services.storage.codec import (
    AccountSnapshot,
    decode_account,
    decode_account_entries,
    decode_accounts,
    encode_account,
    encode_accounts,
    from_phone_order,
)
from carihesap.services.storage.memory import InMemoryKeyValueStore
from carihesap.services.storage.file_store import FileKeyValueStore
from carihesap.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)
from carihesap.services.storage.repository import AccountRepository

__all__ = [
    # Interfaces
    "KeyValueStore",
    # Exceptions
    "SnapshotDecodeError",
    "StorageConnectionError",
    "StorageError",
    # Codec
    "AccountSnapshot",
    "decode_account",
    "decode_account_entries",
    "decode_accounts",
    "encode_account",
    "encode_accounts",
    "from_phone_order",
    # Backends
    "FileKeyValueStore",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryKeyValueStore",
    # Repository
    "AccountRepository",
]
