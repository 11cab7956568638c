"""Configuration helpers for the quote reader."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .kvstore import KeyValueStore

DEFAULT_ACTIVE_AUTHORS = ["Karl Marx", "Friedrich Engels", "Marx", "Engels", "Lenin"]


class SearchEngine(str, Enum):
    GOOGLE = "Google"
    PERPLEXITY = "Perplexity"


class LaunchOption(str, Enum):
    """Which queue is built when the library finishes loading."""

    ACTIVE = "Active Feed"
    STARRED = "Starred Figures"
    FAVORITES = "Favorites"
    SAVED_QUEUE = "Saved Queue"
    SHUFFLE_ALL = "Shuffle All Quotes"
    EMPTY = "Empty"


@dataclass
class ReaderConfig:
    """Holds filesystem locations and defaults for a reader instance."""

    works_root: Path = Path("./Works")
    data_dir: Path = Path("./.theory")
    bundle_works: Optional[Path] = None
    default_active_authors: List[str] = field(default_factory=lambda: list(DEFAULT_ACTIVE_AUTHORS))
    widget_snapshot_limit: int = 50

    @property
    def defaults_path(self) -> Path:
        return self.data_dir / "defaults.json"

    @property
    def shared_dir(self) -> Path:
        return self.data_dir / "shared"

    @property
    def saved_queues_dir(self) -> Path:
        return self.data_dir / "SavedQueues"

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "ReaderConfig":
        kwargs: Dict[str, Any] = {}
        if "works_root" in data and data["works_root"]:
            kwargs["works_root"] = Path(data["works_root"])
        if "data_dir" in data and data["data_dir"]:
            kwargs["data_dir"] = Path(data["data_dir"])
        if "bundle_works" in data and data["bundle_works"]:
            kwargs["bundle_works"] = Path(data["bundle_works"])
        if "default_active_authors" in data and isinstance(data["default_active_authors"], list):
            kwargs["default_active_authors"] = [str(value) for value in data["default_active_authors"]]
        if "widget_snapshot_limit" in data:
            kwargs["widget_snapshot_limit"] = int(data["widget_snapshot_limit"])
        return cls(**kwargs)


def load_config(path: Optional[Path]) -> Dict[str, Any]:
    """Load a JSON configuration file if provided."""

    if path is None:
        return {}
    with path.expanduser().resolve().open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _stored_flag(store: KeyValueStore, key: str, default: bool) -> bool:
    value = store.get(key)
    return value if isinstance(value, bool) else default


@dataclass
class Settings:
    """User toggles persisted in the app's key-value store."""

    search_engine: SearchEngine = SearchEngine.GOOGLE
    launch_option: LaunchOption = LaunchOption.ACTIVE
    launch_saved_queue_id: Optional[str] = None
    show_satire: bool = False
    hide_citations: bool = True
    hide_quotes: bool = True

    @classmethod
    def from_store(cls, store: KeyValueStore) -> "Settings":
        settings = cls()
        engine = store.get("SearchEngine")
        if engine in {item.value for item in SearchEngine}:
            settings.search_engine = SearchEngine(engine)
        launch = store.get("LaunchOption")
        if launch in {item.value for item in LaunchOption}:
            settings.launch_option = LaunchOption(launch)
        launch_id = store.get("LaunchSavedQueueID")
        if isinstance(launch_id, str) and launch_id:
            settings.launch_saved_queue_id = launch_id
        settings.show_satire = _stored_flag(store, "ShowSatire", settings.show_satire)
        settings.hide_citations = _stored_flag(store, "HideCitations", settings.hide_citations)
        settings.hide_quotes = _stored_flag(store, "HideQuotes", settings.hide_quotes)
        return settings

    def save(self, store: KeyValueStore) -> None:
        values: Dict[str, Any] = {
            "SearchEngine": self.search_engine.value,
            "LaunchOption": self.launch_option.value,
            "ShowSatire": self.show_satire,
            "HideCitations": self.hide_citations,
            "HideQuotes": self.hide_quotes,
        }
        if self.launch_saved_queue_id:
            values["LaunchSavedQueueID"] = self.launch_saved_queue_id
        store.update(values)
