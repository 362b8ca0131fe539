"""Key-value string storage for guest devices."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Optional

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStorage:
    """String key-value interface mirroring browser local storage."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class JSONFileLocalStorage(LocalStorage):
    """One file per key under a per-device directory."""

    def __init__(self, base_dir: str | Path = "data/local_storage", device_id: str = "default") -> None:
        self.base_dir = Path(base_dir) / _SAFE_NAME.sub("_", device_id)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{_SAFE_NAME.sub('_', key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self._path(key).write_text(value, encoding="utf-8")

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class InMemoryLocalStorage(LocalStorage):
    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove_item(self, key: str) -> None:
        self.values.pop(key, None)


__all__ = ["InMemoryLocalStorage", "JSONFileLocalStorage", "LocalStorage"]
