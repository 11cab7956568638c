"""Reader state holder tying the library, preferences, roster and queue together."""
from __future__ import annotations

import logging
import random
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .config import LaunchOption, ReaderConfig, SearchEngine, Settings
from .deeplinks import LinkAction, parse_deep_link
from .feed import ACTIVE_FEED, ALL_QUOTES, FeedBuilder, QueuePlan
from .fetchers import RemoteWorkFetcher
from .kvstore import KeyValueStore
from .loader import WorksLoader, import_author_folder, import_text_file, seed_works
from .models import Author, Library, Quote, SavedQueue
from .preferences import PreferenceSets
from .queues import EMPTY_QUEUE, QueueManager, RestoreResult, SavedQueueStore
from .roster import AuthorRoster
from .store import ContentStore, LoadCoordinator
from .widget import IMAGES_DIRNAME, WidgetPublisher

logger = logging.getLogger(__name__)

SHORTCUT_FAVORITES = "PlayFavorites"
SHORTCUT_STARRED = "PlayStarred"
SHORTCUT_SHUFFLE_ALL = "ShuffleAll"


class QuoteReader:
    """Owns every piece of reader state and persists it on each user action.

    The queue notifies the widget publisher on every change once the first
    load has completed.
    """

    def __init__(
        self,
        config: ReaderConfig,
        *,
        defaults: Optional[KeyValueStore] = None,
        snapshot: Optional[KeyValueStore] = None,
        actions: Optional[KeyValueStore] = None,
        rng: Optional[random.Random] = None,
        fetcher: Optional[RemoteWorkFetcher] = None,
    ) -> None:
        self.config = config
        self.defaults = defaults if defaults is not None else KeyValueStore(config.defaults_path)
        self.snapshot = snapshot if snapshot is not None else KeyValueStore(config.shared_dir / "snapshot.json")
        self.actions = actions if actions is not None else KeyValueStore(config.shared_dir / "actions.json")
        self.rng = rng or random.Random()
        self._fetcher = fetcher

        self.store = ContentStore()
        self.loader = WorksLoader()
        self.coordinator = LoadCoordinator(self.store)
        self.settings = Settings.from_store(self.defaults)
        self.preferences = PreferenceSets.load(self.defaults)
        self.roster = AuthorRoster()
        self.feed = FeedBuilder(self.store, self.roster, self.preferences, self.settings, self.rng)
        self.queue = QueueManager(self.preferences, listeners=[self._on_queue_change])
        self.saved_store = SavedQueueStore(config.saved_queues_dir)
        self.saved_queues: List[SavedQueue] = []
        self.publisher = WidgetPublisher(self.snapshot, self.actions, config.shared_dir / IMAGES_DIRNAME)
        self._sync_enabled = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def read_library(self, progress: Optional[Callable[[float, str], None]] = None) -> Library:
        if self.config.bundle_works is not None:
            seed_works(self.config.bundle_works, self.config.works_root)
        return self.loader.load(self.config.works_root, progress)

    def load(self) -> bool:
        """Load the works directory synchronously and build the launch queue."""

        generation = self.coordinator.begin()
        library = self.read_library()
        if not self.coordinator.complete(generation, library):
            return False
        self._after_load()
        return True

    def load_in_background(self, on_ready: Optional[Callable[[], None]] = None) -> threading.Thread:
        def _finish(_library: Library) -> None:
            self._after_load()
            if on_ready is not None:
                on_ready()

        return self.coordinator.run_in_background(self.read_library, on_complete=_finish)

    def _after_load(self) -> None:
        if self.preferences.migrate(self.store.legacy_aliases()):
            self._persist()
        self.roster = AuthorRoster.load(self.defaults, self.store.authors, self.config.default_active_authors)
        if self.roster.repaired:
            self.roster.save(self.defaults)
        self.feed.roster = self.roster
        self.feed.refresh_feed()
        self.saved_queues = self.saved_store.load_all()

        self._sync_enabled = False
        self._apply_launch_option()
        if self.publisher.apply_pending_favorites(self.preferences.favorites):
            self._persist()
        self._sync_enabled = True
        self.sync_widget(include_authors=True)

    def _apply_launch_option(self) -> None:
        option = self.settings.launch_option
        if option is LaunchOption.EMPTY:
            self.queue.set_queue([], EMPTY_QUEUE)
        elif option is LaunchOption.SHUFFLE_ALL:
            self.load_all_quotes_queue()
        elif option is LaunchOption.STARRED:
            self.load_starred_queue()
        elif option is LaunchOption.FAVORITES:
            self.load_favorites_queue()
        elif option is LaunchOption.SAVED_QUEUE:
            saved = self.find_saved_queue(self.settings.launch_saved_queue_id or "")
            if saved is None or self.restore_saved_queue(saved) is RestoreResult.UNRESOLVED:
                logger.info("Launch queue unavailable; building the active feed instead")
                self.build_main_feed_queue()
        else:
            self.build_main_feed_queue()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    @property
    def active_quote_count(self) -> int:
        return len(self.feed.main_feed)

    def find_quote(self, quote_id: str) -> Optional[Quote]:
        return self.store.find_quote(quote_id)

    def find_author(self, key: str) -> Optional[Author]:
        """Look an author up by id or by name."""

        return self.store.author(key) or self.store.author_by_name(key)

    def find_saved_queue(self, key: str) -> Optional[SavedQueue]:
        for saved in self.saved_queues:
            if saved.queue_id == key:
                return saved
        for saved in self.saved_queues:
            if saved.name == key:
                return saved
        return None

    # ------------------------------------------------------------------
    # Queue building
    # ------------------------------------------------------------------
    def _apply_plan(self, plan: QueuePlan) -> None:
        quotes, name = plan
        if not self.store.quotes:
            self.queue.placeholder_queue()
            return
        self.queue.set_queue(quotes, name)

    def build_main_feed_queue(self) -> None:
        self._apply_plan(self.feed.main_feed_queue())

    def load_all_quotes_queue(self) -> None:
        self._apply_plan(self.feed.all_quotes_queue())

    def load_starred_queue(self) -> None:
        self._apply_plan(self.feed.starred_queue())

    def load_favorites_queue(self) -> None:
        self._apply_plan(self.feed.favorites_queue())

    def replace_queue(self, authors: Sequence[Author]) -> None:
        self._apply_plan(self.feed.author_queue(authors))

    def refresh_active_queue(self) -> None:
        """Rebuild derived queues, or reshuffle a custom queue in place."""

        if self.queue.name == ACTIVE_FEED:
            self.build_main_feed_queue()
        elif self.queue.name == ALL_QUOTES:
            self.load_all_quotes_queue()
        else:
            self.queue.set_queue(self.feed.shuffled(self.queue.items), self.queue.name)

    def shuffle_queue(self) -> None:
        self.queue.shuffle(self.rng)

    def add_to_queue(self, quotes: Sequence[Quote]) -> None:
        self.queue.append(quotes)

    def remove_from_queue(self, quote_id: str) -> bool:
        return self.queue.remove(quote_id)

    def move_queue_items(self, from_indices: Sequence[int], to_index: int) -> None:
        self.queue.move(from_indices, to_index)

    def view(self, quote: Quote) -> None:
        if self.queue.advance_cursor(quote):
            self._persist()

    def next_quote(self) -> Optional[Quote]:
        return self.queue.next()

    def handle_shortcut(self, kind: str) -> bool:
        if kind == SHORTCUT_FAVORITES:
            self.load_favorites_queue()
        elif kind == SHORTCUT_STARRED:
            self.load_starred_queue()
        elif kind == SHORTCUT_SHUFFLE_ALL:
            self.load_all_quotes_queue()
        else:
            return False
        return True

    # ------------------------------------------------------------------
    # Saved queues
    # ------------------------------------------------------------------
    def save_queue(self, name: str) -> SavedQueue:
        saved = self.queue.save(name)
        self.saved_queues.append(saved)
        self.saved_store.save(saved)
        self.sync_widget()
        return saved

    def restore_saved_queue(self, saved: SavedQueue) -> RestoreResult:
        return self.queue.restore(saved, self.store)

    def delete_saved_queue(self, saved: SavedQueue) -> None:
        self.saved_store.delete(saved)
        self.saved_queues = [item for item in self.saved_queues if item.queue_id != saved.queue_id]
        self.sync_widget()

    # ------------------------------------------------------------------
    # Preference actions
    # ------------------------------------------------------------------
    def toggle_favorite(self, quote_id: str) -> bool:
        state = self.preferences.toggle_favorite(quote_id)
        self._persist()
        self.sync_widget()
        return state

    def toggle_star(self, author_id: str) -> bool:
        state = self.preferences.toggle_star(author_id)
        self._persist()
        return state

    def _filters_changed(self) -> None:
        self._persist()
        self.feed.refresh_feed()

    def toggle_disliked(self, quote_id: str) -> bool:
        state = self.preferences.toggle_disliked(quote_id)
        self._filters_changed()
        return state

    def hide_quote(self, quote_id: str) -> None:
        self.preferences.hide(quote_id)
        self.queue.remove(quote_id)
        self._filters_changed()

    def unhide_quote(self, quote_id: str) -> None:
        self.preferences.unhide(quote_id)
        self._filters_changed()

    def toggle_hidden(self, quote_id: str) -> bool:
        if quote_id in self.preferences.hidden:
            self.unhide_quote(quote_id)
            return False
        self.hide_quote(quote_id)
        return True

    def toggle_work_exclusion(self, work_title: str) -> bool:
        state = self.preferences.toggle_work_exclusion(work_title)
        self._filters_changed()
        return state

    def toggle_author_type(self, author: Author) -> bool:
        state = self.preferences.toggle_author_type(author)
        self._persist()
        return state

    def clear_starred(self) -> None:
        self.preferences.clear_starred()
        self._persist()

    def clear_hidden(self) -> None:
        self.preferences.clear_hidden()
        self._filters_changed()

    def clear_disliked(self) -> None:
        self.preferences.clear_disliked()
        self._filters_changed()

    def reset_read_history(self) -> None:
        self.preferences.reset_history()
        self._persist()

    # ------------------------------------------------------------------
    # Roster actions
    # ------------------------------------------------------------------
    def _roster_changed(self) -> None:
        self.roster.save(self.defaults)
        self.feed.refresh_feed()

    def toggle_author_active(self, author_id: str) -> bool:
        state = self.roster.toggle_active(author_id)
        self._roster_changed()
        return state

    def move_roster_entries(self, from_indices: Sequence[int], to_index: int) -> None:
        self.roster.move(from_indices, to_index)
        self._roster_changed()

    def bulk_toggle_authors(self, authors: Sequence[Author], enable: bool) -> None:
        self.roster.bulk_set_active([author.author_id for author in authors], enable)
        self._roster_changed()

    def randomize_active_figures(self, book_mode: bool) -> None:
        category = [author.author_id for author in self.store.authors if self.preferences.is_book(author) == book_mode]
        self.roster.randomize_active(category, rng=self.rng)
        self._roster_changed()

    def reset_roster(self) -> None:
        self.roster.reset(self.store.authors, self.config.default_active_authors)
        self._roster_changed()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def set_search_engine(self, engine: SearchEngine) -> None:
        self.settings.search_engine = engine
        self._persist()

    def set_launch_option(self, option: LaunchOption) -> None:
        self.settings.launch_option = option
        self._persist()

    def set_launch_saved_queue(self, queue_id: str) -> None:
        self.settings.launch_saved_queue_id = queue_id
        self._persist()

    def set_show_satire(self, value: bool) -> None:
        self.settings.show_satire = value
        self._persist()
        self.feed.refresh_feed()

    # ------------------------------------------------------------------
    # Deep links
    # ------------------------------------------------------------------
    def handle_deep_link(self, url: str) -> Optional[str]:
        """Apply a widget link. Returns the quote text for copy links."""

        link = parse_deep_link(url)
        if link is None:
            return None
        if link.action is LinkAction.NEXT:
            self.next_quote()
            return None
        quote = self.find_quote(link.quote_id or "")
        if quote is None:
            logger.info("Deep link to unknown quote %s", link.quote_id)
            return None
        if link.action is LinkAction.OPEN:
            self.queue.set_queue([quote])
        elif link.action is LinkAction.COPY:
            return quote.display_text(self.settings.hide_citations, self.settings.hide_quotes)
        elif link.action is LinkAction.FAVORITE:
            self.toggle_favorite(quote.quote_id)
        return None

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------
    def import_text_file(self, path: Path, manual_year: Optional[str] = None) -> Optional[Path]:
        destination = import_text_file(path, self.config.works_root, manual_year)
        if destination is not None:
            self.load()
        return destination

    def import_author_folder(self, path: Path) -> Optional[Path]:
        destination = import_author_folder(path, self.config.works_root)
        if destination is not None:
            self.load()
        return destination

    def import_remote(self, url: str, author: str, title: str, year: str) -> Path:
        if self._fetcher is None:
            self._fetcher = RemoteWorkFetcher()
        destination = self._fetcher.fetch(url, self.config.works_root, author, title, year)
        self.load()
        return destination

    def update_author_image(self, author: Author, image: bytes) -> bool:
        target = self.config.works_root / author.name / f"{author.name}.jpg"
        try:
            target.write_bytes(image)
        except OSError as exc:
            logger.warning("Could not store image for %s: %s", author.name, exc)
            return False
        self.load()
        return True

    # ------------------------------------------------------------------
    # Persistence and widget sync
    # ------------------------------------------------------------------
    def _persist(self) -> None:
        self.preferences.save(self.defaults)
        self.settings.save(self.defaults)

    def _on_queue_change(self, _queue: QueueManager) -> None:
        if self._sync_enabled:
            self.sync_widget()

    def sync_widget(self, include_authors: bool = False) -> int:
        if self.publisher.apply_pending_favorites(self.preferences.favorites):
            self._persist()
        fallback = self.store.quotes[: self.config.widget_snapshot_limit]
        return self.publisher.publish(
            self.queue.items,
            fallback,
            self.preferences.favorites,
            [saved.name for saved in self.saved_queues],
            self.store.authors if include_authors else None,
        )
