"""
Abstract Storage Interface

DESIGN DECISION: The ledger talks to storage through a tiny key-value
interface. This allows us to:
1. Keep the phone app's "blob per key" model on the desktop (files)
2. Use in-memory storage for testing
3. Put the same data in Google Sheets without touching business logic

The interface is intentionally simple - values are opaque bytes and the
ledger decides what goes inside them.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract interface for the persistence gateway.

    Any storage implementation (memory, files, Google Sheets, ...)
    must implement these methods.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[bytes]:
        """
        Read the blob stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored bytes, or None if nothing is stored under the key

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, key: str, value: bytes) -> None:
        """
        Store a blob under a key, replacing any previous value.

        Args:
            key: Storage key
            value: Serialized snapshot

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Args:
            key: Storage key

        Returns:
            True if something was deleted, False if the key did not exist
        """
        pass

    def contains(self, key: str) -> bool:
        return self.load(key) is not None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class SnapshotDecodeError(StorageError):
    """A stored blob could not be turned back into ledger data."""
    pass
