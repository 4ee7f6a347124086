# excom_catalog/storage/key_value_store.py

"""String key-value stores with the localStorage call shape."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from excom_catalog.config.settings import Settings

logger = logging.getLogger("excom_catalog.storage")


class KeyValueStore(ABC):
    """Synchronous string-to-string store."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...

    def clear(self) -> int:
        """Remove every key; returns how many were removed."""
        existing = self.keys()
        for key in existing:
            self.remove_item(key)
        return len(existing)


class MemoryStore(KeyValueStore):
    """Process-local store, used by tests and ``--no-persist`` runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """Store persisted as one JSON object on disk.

    The file is re-read on every access and rewritten on every change,
    so several processes see each other's writes.  An unreadable file
    is treated as empty.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or Settings.STORE_PATH
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("JsonFileStore initialised, path=%s", self.path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.warning(
                "Local store at %s is unreadable, starting empty",
                self.path,
                exc_info=True,
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _dump(self, data: dict[str, str]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        tmp.replace(self.path)

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)

    def keys(self) -> list[str]:
        return list(self._load())
