"""Key-value storage backends for drafts.

Backends store opaque strings under string keys. Any failure surfaces
as StorageError; deciding what to do about it is the caller's job.
"""

import json
from pathlib import Path
from typing import Protocol

import structlog

from vendorcatalog.domain.exceptions import StorageError

logger = structlog.get_logger()


class KeyValueStorage(Protocol):
    """Durable string key-value store scoped to one session/profile."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStorage:
    """Process-local storage; drafts vanish when the session ends."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileStorage:
    """Storage persisted to a single JSON object file.

    The file is rewritten on every change through a temporary file so a
    crash mid-write never leaves a truncated document behind.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_all(self, key: str) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            raise StorageError(key, str(e)) from e
        if not isinstance(data, dict):
            raise StorageError(key, f"{self.path} does not contain a JSON object")
        return data

    def _write_all(self, key: str, data: dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(key, str(e)) from e

    def get(self, key: str) -> str | None:
        value = self._read_all(key).get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all(key)
        data[key] = value
        self._write_all(key, data)

    def delete(self, key: str) -> None:
        data = self._read_all(key)
        if data.pop(key, None) is not None:
            self._write_all(key, data)
