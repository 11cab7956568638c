"""Derive reading pools and shuffled queues from the roster and preferences."""
from __future__ import annotations

import random
from typing import AbstractSet, Iterable, List, Optional, Sequence, Tuple

from .config import Settings
from .models import Author, Quote
from .preferences import PreferenceSets
from .roster import AuthorRoster
from .store import ContentStore

ACTIVE_FEED = "Active Feed"
ALL_QUOTES = "All Quotes"
STARRED_FIGURES = "Starred Figures"
FAVORITES = "Favorites"
REPLACED_QUEUE = "Replaced Queue"

QueuePlan = Tuple[List[Quote], str]


def filter_feed(
    quotes: Iterable[Quote],
    active_ids: AbstractSet[str],
    excluded_works: AbstractSet[str],
    disliked: AbstractSet[str],
    hidden: AbstractSet[str],
    show_satire: bool,
) -> List[Quote]:
    """Return the quotes eligible for the main feed, in library order."""

    return [
        quote
        for quote in quotes
        if quote.author_id in active_ids
        and quote.work_title not in excluded_works
        and quote.quote_id not in disliked
        and quote.quote_id not in hidden
        and (show_satire or not quote.is_satire)
    ]


class FeedBuilder:
    """Builds queue contents; every builder returns ``(quotes, queue_name)``."""

    def __init__(
        self,
        store: ContentStore,
        roster: AuthorRoster,
        preferences: PreferenceSets,
        settings: Settings,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.roster = roster
        self.preferences = preferences
        self.settings = settings
        self.rng = rng or random.Random()
        self.main_feed: List[Quote] = []

    def refresh_feed(self) -> List[Quote]:
        prefs = self.preferences
        self.main_feed = filter_feed(
            self.store.quotes,
            self.roster.active_ids(),
            prefs.excluded_works,
            prefs.disliked,
            prefs.hidden,
            self.settings.show_satire,
        )
        return self.main_feed

    def shuffled(self, quotes: Sequence[Quote]) -> List[Quote]:
        result = list(quotes)
        self.rng.shuffle(result)
        return result

    def main_feed_queue(self) -> QueuePlan:
        return self.shuffled(self.refresh_feed()), ACTIVE_FEED

    def all_quotes_queue(self) -> QueuePlan:
        prefs = self.preferences
        pool = [
            quote
            for quote in self.store.quotes
            if not prefs.is_hidden(quote)
            and not prefs.is_disliked(quote)
            and (self.settings.show_satire or not quote.is_satire)
        ]
        return self.shuffled(pool), ALL_QUOTES

    def starred_queue(self) -> QueuePlan:
        prefs = self.preferences
        pool = [
            quote
            for quote in self.store.quotes
            if prefs.is_starred(quote.author_id) and not prefs.is_hidden(quote)
        ]
        return self.shuffled(pool), STARRED_FIGURES

    def favorites_queue(self) -> QueuePlan:
        prefs = self.preferences
        pool = [quote for quote in self.store.quotes if prefs.is_favorite(quote) and not prefs.is_hidden(quote)]
        return self.shuffled(pool), FAVORITES

    def author_queue(self, authors: Sequence[Author]) -> QueuePlan:
        pool = [quote for author in authors for quote in author.quotes]
        return self.shuffled(pool), REPLACED_QUEUE
