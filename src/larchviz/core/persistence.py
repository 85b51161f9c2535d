"""Key-value persistence for the saved, gallery and theme collections.

The store writes the full value for a key on every mutation; adapters only
need ``load`` and ``save``. Values are JSON-serialisable (lists of dicts for
the collections, a string for the theme).

Two adapters are provided:

- :class:`JsonFilePersistence` keeps one ``<key>.json`` file per key in a
  directory. Loading is forgiving: a missing, empty or invalid file yields
  the default so a corrupt file never blocks startup.
- :class:`MemoryPersistence` keeps values in a dict, for tests and for
  sessions that should not touch disk.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SAVED_PROMPTS_KEY = "larch_saved_prompts"
GALLERY_ITEMS_KEY = "larch_gallery_items"
THEME_KEY = "larch_theme_preference"


class PersistenceAdapter(ABC):
    """Durable key-value storage boundary."""

    @abstractmethod
    def load(self, key: str, default: Any = None) -> Any:
        """Return the stored value for *key*, or *default* if absent."""

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Replace the stored value for *key*."""


class JsonFilePersistence(PersistenceAdapter):
    """One JSON file per key inside *root*."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized JSON persistence at {self.root}")

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def load(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with open(path, encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable persisted value {path}: {e}")
            return default

    def save(self, key: str, value: Any) -> None:
        with open(self._path(key), "w", encoding="utf-8") as handle:
            json.dump(value, handle, indent=2)


class MemoryPersistence(PersistenceAdapter):
    """In-process storage. Values are round-tripped through JSON on save."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.values: dict[str, Any] = dict(initial or {})
        self.write_count = 0

    def load(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def save(self, key: str, value: Any) -> None:
        self.values[key] = json.loads(json.dumps(value))
        self.write_count += 1
