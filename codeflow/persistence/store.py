"""
State Stores - Asynchronous key-value storage for session snapshots.

The session only needs get/set/remove on string values:
- InMemoryStore: dict-backed, for tests and demos
- FileStore: one JSON file per key on local disk

Design decisions:
- Values are opaque strings (the snapshot codec owns the format)
- Stores raise on I/O failure; callers decide whether that matters
"""

from __future__ import annotations
import asyncio
import hashlib
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..config import default_data_dir


@runtime_checkable
class KeyValueStore(Protocol):
    """Contract for the persistence medium."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class InMemoryStore:
    """KeyValueStore backed by a dict. For tests and demos."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self.writes = 0

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self.writes += 1

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileStore:
    """
    File-based KeyValueStore.

    Usage:
        store = FileStore(data_dir="~/.codeflow/state")
        await store.set("codeflow_game_state_v1", payload)
        payload = await store.get("codeflow_game_state_v1")

    Writes go to a temporary file first and are renamed into place,
    so a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, data_dir: str | Path | None = None):
        if data_dir is None:
            data_dir = default_data_dir()
        self.data_dir = Path(data_dir).expanduser()

    async def get(self, key: str) -> str | None:
        path = self._get_path(key)
        return await asyncio.to_thread(self._read, path)

    async def set(self, key: str, value: str) -> None:
        path = self._get_path(key)
        await asyncio.to_thread(self._write, path, value)

    async def remove(self, key: str) -> None:
        path = self._get_path(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    def list_keys(self) -> list[str]:
        """List stored file stems."""
        if not self.data_dir.exists():
            return []
        return [f.stem for f in self.data_dir.glob("*.json")]

    def _get_path(self, key: str) -> Path:
        """
        Get file path for a key.

        Keys with characters unsafe for file names are hashed.
        """
        if re.fullmatch(r"[A-Za-z0-9_.-]+", key):
            return self.data_dir / f"{key}.json"
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        return self.data_dir / f"{digest}.json"

    @staticmethod
    def _read(path: Path) -> str | None:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    @staticmethod
    def _write(path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)
