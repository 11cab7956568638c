"""Flat key-value persistence backed by a JSON file."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class KeyValueStore:
    """String-keyed store of JSON values.

    With ``path`` set, every write rewrites the whole file through a temporary
    file so readers in another process never see a half-written document.
    Without a path the values only live in memory.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self._data: Dict[str, Any] = {}
        self.reload()

    def reload(self) -> None:
        """Re-read the backing file, picking up writes from other processes."""

        if self.path is None:
            return
        if not self.path.exists():
            self._data = {}
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            self._data = {}
            return
        self._data = raw if isinstance(raw, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def get_list(self, key: str) -> List[str]:
        value = self._data.get(key)
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def update(self, values: Dict[str, Any]) -> None:
        self._data.update(values)
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def _flush(self) -> None:
        if self.path is None:
            return
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(temp_path, self.path)
        except OSError as exc:
            logger.warning("Could not write store %s: %s", self.path, exc)
