"""In-memory content store and load sequencing."""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Dict, List, Optional

from .models import Author, Library, Quote, Work

logger = logging.getLogger(__name__)


class LoadState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"


class ContentStore:
    """Canonical collections of quotes, works and authors."""

    def __init__(self) -> None:
        self.quotes: List[Quote] = []
        self.works: List[Work] = []
        self.authors: List[Author] = []
        self.state = LoadState.EMPTY
        self._quotes_by_id: Dict[str, Quote] = {}
        self._quotes_by_legacy_id: Dict[str, Quote] = {}
        self._authors_by_id: Dict[str, Author] = {}

    @property
    def is_ready(self) -> bool:
        return self.state is LoadState.READY and bool(self.quotes)

    def replace(self, library: Library) -> None:
        self.quotes = list(library.quotes)
        self.works = list(library.works)
        self.authors = list(library.authors)
        self._quotes_by_id = {quote.quote_id: quote for quote in self.quotes}
        self._quotes_by_legacy_id = {quote.legacy_id: quote for quote in self.quotes}
        self._authors_by_id = {author.author_id: author for author in self.authors}
        self.state = LoadState.READY

    def find_quote(self, quote_id: str) -> Optional[Quote]:
        return self._quotes_by_id.get(quote_id) or self._quotes_by_legacy_id.get(quote_id)

    def author(self, author_id: str) -> Optional[Author]:
        return self._authors_by_id.get(author_id)

    def author_by_name(self, name: str) -> Optional[Author]:
        for author in self.authors:
            if author.name == name:
                return author
        return None

    def work(self, author_id: str, title: str) -> Optional[Work]:
        author = self.author(author_id)
        if author is None:
            return None
        for work in author.works:
            if work.title == title:
                return work
        return None

    def quotes_for_author(self, author_id: str) -> List[Quote]:
        author = self.author(author_id)
        return author.quotes if author else []

    def legacy_aliases(self) -> Dict[str, str]:
        """Map name-based keys from older stores onto current identifiers."""

        aliases: Dict[str, str] = {}
        for author in self.authors:
            aliases[author.name] = author.author_id
        for quote in self.quotes:
            aliases[quote.legacy_id] = quote.quote_id
        return aliases


class LoadCoordinator:
    """Sequences library loads with a monotonic generation counter.

    A load that finishes after a newer one has started is discarded; loads are
    never cancelled, only superseded.
    """

    def __init__(self, store: ContentStore) -> None:
        self.store = store
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            if self.store.state is LoadState.EMPTY:
                self.store.state = LoadState.LOADING
            return self._generation

    def complete(self, generation: int, library: Library) -> bool:
        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale load %d (latest is %d)", generation, self._generation)
                return False
            self.store.replace(library)
            return True

    def run_in_background(
        self,
        load: Callable[[], Library],
        on_complete: Optional[Callable[[Library], None]] = None,
    ) -> threading.Thread:
        generation = self.begin()

        def _worker() -> None:
            library = load()
            if self.complete(generation, library) and on_complete is not None:
                on_complete(library)

        thread = threading.Thread(target=_worker, daemon=True)
        thread.start()
        return thread
