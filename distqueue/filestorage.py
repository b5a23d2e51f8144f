"""JSON documents stored one per file in a directory."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

_SUFFIX = ".json"


class StorageError(Exception):
    """Raised when a stored document cannot be written, read or removed."""


class StoredFileNotFoundError(StorageError, LookupError):
    """Raised when no document is stored under the requested id."""

    def __init__(self, item_id: str) -> None:
        super().__init__("file not found")
        self.item_id = item_id


class FileStorage:
    """Stores JSON-serialisable values as ``<id>.json`` files in a directory."""

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self.base_dir = Path(base_dir)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"failed to create directory: {exc}") from exc
        self._lock = threading.Lock()

    def _path(self, item_id: str) -> Path:
        return self.base_dir / f"{item_id}{_SUFFIX}"

    def save(self, item_id: str, data: Any) -> None:
        """Write data as JSON under item_id, replacing any earlier value."""
        with self._lock:
            try:
                encoded = json.dumps(data)
            except (TypeError, ValueError) as exc:
                raise StorageError(f"failed to marshal data: {exc}") from exc
            try:
                self._path(item_id).write_text(encoded, encoding="utf-8")
            except OSError as exc:
                raise StorageError(f"failed to write file: {exc}") from exc

    def load(self, item_id: str) -> Any:
        """Return the value stored under item_id."""
        with self._lock:
            try:
                text = self._path(item_id).read_text(encoding="utf-8")
            except FileNotFoundError:
                raise StoredFileNotFoundError(item_id) from None
            except OSError as exc:
                raise StorageError(f"failed to read file: {exc}") from exc
            try:
                return json.loads(text)
            except json.JSONDecodeError as exc:
                raise StorageError(f"failed to unmarshal data: {exc}") from exc

    def delete(self, item_id: str) -> None:
        """Remove the value stored under item_id."""
        with self._lock:
            try:
                self._path(item_id).unlink()
            except OSError as exc:
                raise StorageError(f"failed to delete file: {exc}") from exc

    def ids(self) -> list[str]:
        """Return the ids of all stored values, in file-name order."""
        with self._lock:
            try:
                entries = sorted(self.base_dir.iterdir(), key=lambda p: p.name)
            except OSError as exc:
                raise StorageError(f"failed to read directory: {exc}") from exc
            return [
                entry.name[: -len(_SUFFIX)]
                for entry in entries
                if entry.suffix == _SUFFIX and not entry.is_dir()
            ]