"""Key-value storage backends for persisted carts"""

import os
import re
from pathlib import Path
from typing import Optional, Protocol

from ..core.config import Settings


class KeyValueStorage(Protocol):
    """A durable slot store holding one string per key"""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStorage:
    """In-memory key-value storage"""

    def __init__(self):
        self.slots: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def set(self, key: str, value: str) -> None:
        self.slots[key] = value

    def delete(self, key: str) -> None:
        self.slots.pop(key, None)


class FileStorage:
    """Stores each key as a JSON file under a directory"""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # Write then rename so a crash never leaves a half-written blob
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def create_storage(settings: Settings) -> KeyValueStorage:
    """Build the storage backend named in settings"""
    if settings.storage_backend == "file":
        return FileStorage(settings.storage_path or os.path.join(os.getcwd(), ".cart"))
    return InMemoryStorage()
