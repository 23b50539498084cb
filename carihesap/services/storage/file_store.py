"""
File-backed key-value store

One file per key inside a data directory. This is the desktop stand-in for
the phone's local defaults store.

DESIGN DECISION: Writes go to a temporary file first and are then renamed
over the target, so a crash mid-write leaves the previous snapshot intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote, unquote

from carihesap.services.storage.interface import KeyValueStore, StorageError


FILE_SUFFIX = ".blob"


class FileKeyValueStore(KeyValueStore):
    """Stores each key as <data_dir>/<quoted key>.blob."""

    def __init__(self, data_dir: Union[str, Path]):
        self._root = Path(data_dir).expanduser()
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._root}: {e}")

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path:
        if not key:
            raise StorageError("Storage key must not be empty")
        return self._root / (quote(key, safe="") + FILE_SUFFIX)

    def load(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}")

    def save(self, key: str, value: bytes) -> None:
        path = self._path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise StorageError(f"Failed to save {key}: {e}")

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}")

    def keys(self) -> list[str]:
        return sorted(
            unquote(path.name[: -len(FILE_SUFFIX)])
            for path in self._root.glob(f"*{FILE_SUFFIX}")
        )
