"""The active reading queue and saved queue snapshots."""
from __future__ import annotations

import json
import logging
import random
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .models import Quote, SavedQueue
from .ordering import move_items
from .preferences import PreferenceSets
from .store import ContentStore

logger = logging.getLogger(__name__)

CUSTOM_QUEUE = "Custom Queue"
SHUFFLED_FEED = "Shuffled Feed"
EMPTY_QUEUE = "Empty"

QueueListener = Callable[["QueueManager"], None]


class RestoreResult(str, Enum):
    RESTORED = "restored"
    PARTIAL = "partial"
    UNRESOLVED = "unresolved"


class QueueManager:
    """Holds the ordered reading queue and the cursor into it.

    When the cursor's quote is removed, the cursor moves to the quote that
    takes its place, or to the new last quote when the removed quote was at
    the end.
    """

    def __init__(
        self,
        preferences: Optional[PreferenceSets] = None,
        listeners: Optional[Iterable[QueueListener]] = None,
    ) -> None:
        self.preferences = preferences or PreferenceSets()
        self.listeners: List[QueueListener] = list(listeners or [])
        self.items: List[Quote] = []
        self.name = EMPTY_QUEUE
        self.current_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def current(self) -> Optional[Quote]:
        index = self._index_of(self.current_id)
        return self.items[index] if index is not None else None

    @property
    def current_index(self) -> int:
        index = self._index_of(self.current_id)
        return index if index is not None else 0

    def ids(self) -> List[str]:
        return [quote.quote_id for quote in self.items]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def set_queue(self, quotes: Sequence[Quote], name: str = CUSTOM_QUEUE) -> None:
        self.items = list(quotes)
        self.name = name
        self.current_id = self.items[0].quote_id if self.items else None
        self._notify()

    def placeholder_queue(self) -> None:
        """Show the single "data not ready" quote."""

        self.set_queue([Quote.placeholder()], EMPTY_QUEUE)

    def append(self, quotes: Sequence[Quote]) -> None:
        was_empty = not self.items
        self.items.extend(quotes)
        if was_empty and self.items:
            self.current_id = self.items[0].quote_id
        self._notify()

    def remove(self, quote_id: str) -> bool:
        index = self._index_of(quote_id)
        if index is None:
            return False
        del self.items[index]
        if quote_id == self.current_id:
            if index < len(self.items):
                self.current_id = self.items[index].quote_id
            elif self.items:
                self.current_id = self.items[-1].quote_id
            else:
                self.current_id = None
        self._notify()
        return True

    def move(self, from_indices: Iterable[int], to_index: int) -> None:
        self.items = move_items(self.items, from_indices, to_index)
        self._notify()

    def advance_cursor(self, quote: Quote) -> bool:
        """Record that ``quote`` is on screen.

        Returns ``True`` when the quote was not viewed before, so the caller
        knows the history needs persisting.
        """

        newly_viewed = self.preferences.mark_viewed(quote.quote_id)
        if quote.quote_id != self.current_id:
            self.current_id = quote.quote_id
            self._notify()
        return newly_viewed

    def next(self) -> Optional[Quote]:
        """Move the cursor one step forward, wrapping to the start."""

        if not self.items:
            return None
        index = (self.current_index + 1) % len(self.items)
        self.current_id = self.items[index].quote_id
        self._notify()
        return self.items[index]

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        shuffled = list(self.items)
        (rng or random.Random()).shuffle(shuffled)
        self.set_queue(shuffled, SHUFFLED_FEED)

    # ------------------------------------------------------------------
    # Saved queues
    # ------------------------------------------------------------------
    def save(self, name: str) -> SavedQueue:
        return SavedQueue(name=name, quote_ids=self.ids())

    def restore(self, saved: SavedQueue, store: ContentStore) -> RestoreResult:
        """Replace the queue with the quotes of ``saved`` that still exist.

        Nothing changes when none of the saved ids resolve.
        """

        resolved = [quote for quote in (store.find_quote(qid) for qid in saved.quote_ids) if quote is not None]
        if not resolved:
            logger.info("Saved queue %r has no resolvable quotes", saved.name)
            return RestoreResult.UNRESOLVED
        self.set_queue(resolved, saved.name)
        if len(resolved) < len(saved.quote_ids):
            return RestoreResult.PARTIAL
        return RestoreResult.RESTORED

    def _index_of(self, quote_id: Optional[str]) -> Optional[int]:
        if quote_id is None:
            return None
        for index, quote in enumerate(self.items):
            if quote.quote_id == quote_id:
                return index
        return None

    def _notify(self) -> None:
        for listener in self.listeners:
            listener(self)


class SavedQueueStore:
    """Persists each saved queue as ``<queue_id>.json`` in one directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, queue: SavedQueue) -> Path:
        return self.directory / f"{queue.queue_id}.json"

    def load_all(self) -> List[SavedQueue]:
        if not self.directory.is_dir():
            return []
        loaded: List[SavedQueue] = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                loaded.append(SavedQueue.from_mapping(data))
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping unreadable saved queue %s: %s", path, exc)
        loaded.sort(key=lambda queue: queue.created, reverse=True)
        return loaded

    def save(self, queue: SavedQueue) -> None:
        path = self.path_for(queue)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(queue.to_mapping(), indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write saved queue %s: %s", path, exc)

    def delete(self, queue: SavedQueue) -> None:
        path = self.path_for(queue)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Could not delete saved queue %s: %s", path, exc)
