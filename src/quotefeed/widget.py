"""Data shared between the reader and its home-screen widget.

The two sides never write the same file. The reader publishes a versioned
snapshot (quotes, favorites, authors, saved queue names) into the snapshot
store; the widget only reads it. Widget actions such as toggling a favorite
are appended to a separate action log owned by the widget. The reader applies
log entries it has not seen yet, in sequence order so the latest entry for a
quote wins, and records the last applied sequence number in its next
snapshot. The widget prunes entries at or below that mark.
"""
from __future__ import annotations

import logging
import random
import shutil
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from .config import SearchEngine
from .kvstore import KeyValueStore
from .models import PLACEHOLDER_AUTHOR, PLACEHOLDER_ID, PLACEHOLDER_TEXT, Author, Quote
from .text import search_link

logger = logging.getLogger(__name__)

QUOTES_KEY = "widget_all_quotes"
FAVORITES_KEY = "widget_favorites"
SAVED_QUEUE_NAMES_KEY = "widget_saved_queues_names"
AUTHORS_KEY = "widget_authors_list"
VERSION_KEY = "widget_snapshot_version"
APPLIED_KEY = "widget_actions_applied"

ACTIONS_KEY = "widget_actions"
NEXT_SEQ_KEY = "widget_next_seq"
FAVORITE_ACTION = "favorite"

IMAGES_DIRNAME = "AuthorImages"


class WidgetSource(str, Enum):
    ALL = "All Quotes"
    FAVORITES = "Favorites"
    SPECIFIC = "Specific Figures"


class RefreshFrequency(str, Enum):
    HOURLY = "Hourly"
    DAILY = "Daily"

    @property
    def interval(self) -> timedelta:
        return timedelta(hours=1) if self is RefreshFrequency.HOURLY else timedelta(days=1)


@dataclass
class WidgetQuote:
    id: str
    text: str
    author: str
    author_id: str
    work: str
    year: str
    sequence: int = 0
    is_favorite: bool = False
    queue_index: int = 0
    queue_total: int = 0

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "WidgetQuote":
        return cls(
            id=str(data["id"]),
            text=str(data.get("text", "")),
            author=str(data.get("author", "")),
            author_id=str(data.get("author_id", "")),
            work=str(data.get("work", "")),
            year=str(data.get("year", "")),
            sequence=int(data.get("sequence", 0)),
            is_favorite=bool(data.get("is_favorite", False)),
            queue_index=int(data.get("queue_index", 0)),
            queue_total=int(data.get("queue_total", 0)),
        )

    @classmethod
    def placeholder(cls) -> "WidgetQuote":
        return cls(id=PLACEHOLDER_ID, text=PLACEHOLDER_TEXT, author=PLACEHOLDER_AUTHOR, author_id="", work="", year="")

    @property
    def is_placeholder(self) -> bool:
        return self.id == PLACEHOLDER_ID

    def search_url(self, engine: SearchEngine = SearchEngine.PERPLEXITY, prefer_app: bool = True) -> str:
        return search_link(self.text, self.author, self.work, self.year, engine, prefer_app)


@dataclass
class WidgetAuthor:
    id: str
    name: str
    has_image: bool = False


@dataclass
class WidgetEntry:
    date: datetime
    quote: WidgetQuote
    image_path: Optional[Path]
    next_refresh: datetime


@dataclass
class WidgetAction:
    seq: int
    action: str
    quote_id: str
    value: bool
    at: str


# ----------------------------------------------------------------------
# Reader side
# ----------------------------------------------------------------------
class WidgetPublisher:
    """Writes the snapshot the widget renders from. Owned by the reader."""

    def __init__(self, snapshot: KeyValueStore, actions: KeyValueStore, images_dir: Path) -> None:
        self.snapshot = snapshot
        self.actions = actions
        self.images_dir = images_dir

    def pending_actions(self) -> List[WidgetAction]:
        self.actions.reload()
        applied = int(self.snapshot.get(APPLIED_KEY, 0) or 0)
        pending = [action for action in read_actions(self.actions) if action.seq > applied]
        pending.sort(key=lambda action: action.seq)
        return pending

    def apply_pending_favorites(self, favorites: Set[str]) -> bool:
        """Fold logged widget favorite toggles into ``favorites``.

        Returns ``True`` when ``favorites`` changed.
        """

        pending = self.pending_actions()
        if not pending:
            return False
        changed = False
        for action in pending:
            if action.action != FAVORITE_ACTION:
                continue
            if action.value and action.quote_id not in favorites:
                favorites.add(action.quote_id)
                changed = True
            elif not action.value and action.quote_id in favorites:
                favorites.discard(action.quote_id)
                changed = True
        self.snapshot.set(APPLIED_KEY, pending[-1].seq)
        return changed

    def publish(
        self,
        queue: Sequence[Quote],
        fallback: Sequence[Quote],
        favorites: Set[str],
        saved_queue_names: Sequence[str],
        authors: Optional[Sequence[Author]] = None,
    ) -> int:
        """Write a new snapshot and return its version number."""

        quotes = [quote for quote in queue if not quote.is_placeholder] or list(fallback)
        total = len(quotes)
        payload = [
            asdict(
                WidgetQuote(
                    id=quote.quote_id,
                    text=quote.display_text(strip_citations=True, strip_quotes=True),
                    author=quote.author,
                    author_id=quote.author_id,
                    work=quote.work_title,
                    year=quote.year,
                    sequence=quote.sequence,
                    is_favorite=quote.quote_id in favorites,
                    queue_index=index + 1,
                    queue_total=total,
                )
            )
            for index, quote in enumerate(quotes)
        ]
        version = int(self.snapshot.get(VERSION_KEY, 0) or 0) + 1
        values: Dict[str, Any] = {
            QUOTES_KEY: payload,
            FAVORITES_KEY: sorted(favorites),
            SAVED_QUEUE_NAMES_KEY: list(saved_queue_names),
            VERSION_KEY: version,
        }
        if authors is not None:
            values[AUTHORS_KEY] = [asdict(author) for author in self._export_authors(authors)]
        self.snapshot.update(values)
        return version

    def _export_authors(self, authors: Iterable[Author]) -> List[WidgetAuthor]:
        exported: List[WidgetAuthor] = []
        try:
            self.images_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Could not create %s: %s", self.images_dir, exc)
        for author in authors:
            has_image = False
            if author.image_path:
                target = self.images_dir / f"{author.author_id}.jpg"
                try:
                    shutil.copyfile(author.image_path, target)
                    has_image = True
                except OSError as exc:
                    logger.warning("Could not share image for %s: %s", author.name, exc)
            exported.append(WidgetAuthor(id=author.author_id, name=author.name, has_image=has_image))
        return exported


# ----------------------------------------------------------------------
# Widget side
# ----------------------------------------------------------------------
def read_actions(store: KeyValueStore) -> List[WidgetAction]:
    actions: List[WidgetAction] = []
    raw = store.get(ACTIONS_KEY)
    if not isinstance(raw, list):
        return actions
    for item in raw:
        try:
            actions.append(
                WidgetAction(
                    seq=int(item["seq"]),
                    action=str(item["action"]),
                    quote_id=str(item["quote_id"]),
                    value=bool(item["value"]),
                    at=str(item.get("at", "")),
                )
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed widget action %r", item)
    return actions


class WidgetProvider:
    """Picks the quote a widget shows. Reads the snapshot, writes only the log."""

    def __init__(
        self,
        snapshot: KeyValueStore,
        actions: KeyValueStore,
        images_dir: Path,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.snapshot = snapshot
        self.actions = actions
        self.images_dir = images_dir
        self.rng = rng or random.Random()

    def quotes(self) -> List[WidgetQuote]:
        raw = self.snapshot.get(QUOTES_KEY)
        if not isinstance(raw, list):
            return []
        quotes: List[WidgetQuote] = []
        for item in raw:
            try:
                quotes.append(WidgetQuote.from_mapping(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("Ignoring malformed widget quote %r", item)
        return quotes

    def authors(self) -> List[WidgetAuthor]:
        raw = self.snapshot.get(AUTHORS_KEY)
        if not isinstance(raw, list):
            return []
        return [
            WidgetAuthor(id=str(item["id"]), name=str(item["name"]), has_image=bool(item.get("has_image")))
            for item in raw
            if isinstance(item, dict) and "id" in item and "name" in item
        ]

    def favorites(self) -> Set[str]:
        """Snapshot favorites with not-yet-applied widget toggles laid over them."""

        favorites = set(self.snapshot.get_list(FAVORITES_KEY))
        applied = int(self.snapshot.get(APPLIED_KEY, 0) or 0)
        for action in sorted(read_actions(self.actions), key=lambda item: item.seq):
            if action.seq <= applied or action.action != FAVORITE_ACTION:
                continue
            if action.value:
                favorites.add(action.quote_id)
            else:
                favorites.discard(action.quote_id)
        return favorites

    def entry(
        self,
        source: WidgetSource = WidgetSource.ALL,
        selected_author_ids: Optional[Sequence[str]] = None,
        frequency: RefreshFrequency = RefreshFrequency.HOURLY,
        now: Optional[datetime] = None,
        skip_id: Optional[str] = None,
    ) -> WidgetEntry:
        self.snapshot.reload()
        self.actions.reload()
        now = now or datetime.now(timezone.utc)
        next_refresh = now + frequency.interval

        quotes = self.quotes()
        if not quotes:
            return WidgetEntry(date=now, quote=WidgetQuote.placeholder(), image_path=None, next_refresh=next_refresh)

        favorites = self.favorites()
        pool: List[WidgetQuote] = []
        if source is WidgetSource.FAVORITES:
            pool = [quote for quote in quotes if quote.id in favorites]
        elif source is WidgetSource.SPECIFIC and selected_author_ids:
            selected = set(selected_author_ids)
            pool = [quote for quote in quotes if quote.author_id in selected]
        if not pool:
            pool = quotes
        if skip_id is not None:
            pool = [quote for quote in pool if quote.id != skip_id] or pool

        chosen = self.rng.choice(pool)
        chosen.is_favorite = chosen.id in favorites

        image_path: Optional[Path] = None
        if source is WidgetSource.SPECIFIC and selected_author_ids and len(selected_author_ids) == 1:
            candidate = self.images_dir / f"{chosen.author_id}.jpg"
            if candidate.exists():
                image_path = candidate

        return WidgetEntry(date=now, quote=chosen, image_path=image_path, next_refresh=next_refresh)

    def next_quote(
        self,
        current_id: Optional[str],
        source: WidgetSource = WidgetSource.ALL,
        selected_author_ids: Optional[Sequence[str]] = None,
        frequency: RefreshFrequency = RefreshFrequency.HOURLY,
        now: Optional[datetime] = None,
    ) -> WidgetEntry:
        """Pick a different quote for the widget's "next" button.

        The quote on screen is only shown again when it is the only one left.
        """

        return self.entry(source, selected_author_ids, frequency, now, skip_id=current_id)

    def toggle_favorite(self, quote_id: str) -> bool:
        """Log a favorite toggle for the reader to apply; return the new state."""

        self.snapshot.reload()
        self.actions.reload()
        value = quote_id not in self.favorites()
        applied = int(self.snapshot.get(APPLIED_KEY, 0) or 0)
        kept = [action for action in read_actions(self.actions) if action.seq > applied]
        seq = max(int(self.actions.get(NEXT_SEQ_KEY, 1) or 1), applied + 1)
        kept.append(
            WidgetAction(
                seq=seq,
                action=FAVORITE_ACTION,
                quote_id=quote_id,
                value=value,
                at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            )
        )
        self.actions.update({ACTIONS_KEY: [asdict(action) for action in kept], NEXT_SEQ_KEY: seq + 1})
        return value
