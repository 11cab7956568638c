"""Per-user membership sets keyed by quote or author identifiers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Set

from .kvstore import KeyValueStore
from .models import Author, Quote, Work

FAVORITES_KEY = "Favorites"
VIEWED_KEY = "Viewed"
EXCLUDED_WORKS_KEY = "ExcludedWorks"
DISLIKED_KEY = "NotBased"
HIDDEN_KEY = "DisabledQuotes"
STARRED_KEY = "StarredAuthors"
TYPE_OVERRIDES_KEY = "AuthorTypeOverrides"


def _toggle(values: Set[str], key: str) -> bool:
    """Flip membership of ``key`` and return whether it is now present."""

    if key in values:
        values.discard(key)
        return False
    values.add(key)
    return True


def _migrate(keys: Iterable[str], aliases: Mapping[str, str]) -> Set[str]:
    return {aliases.get(key, key) for key in keys}


@dataclass
class PreferenceSets:
    favorites: Set[str] = field(default_factory=set)
    starred: Set[str] = field(default_factory=set)
    excluded_works: Set[str] = field(default_factory=set)
    disliked: Set[str] = field(default_factory=set)
    hidden: Set[str] = field(default_factory=set)
    viewed: Set[str] = field(default_factory=set)
    type_overrides: Dict[str, bool] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Quote-level sets
    # ------------------------------------------------------------------
    def toggle_favorite(self, quote_id: str) -> bool:
        return _toggle(self.favorites, quote_id)

    def toggle_disliked(self, quote_id: str) -> bool:
        return _toggle(self.disliked, quote_id)

    def hide(self, quote_id: str) -> None:
        self.hidden.add(quote_id)

    def unhide(self, quote_id: str) -> None:
        self.hidden.discard(quote_id)

    def toggle_hidden(self, quote_id: str) -> bool:
        return _toggle(self.hidden, quote_id)

    def mark_viewed(self, quote_id: str) -> bool:
        if quote_id in self.viewed:
            return False
        self.viewed.add(quote_id)
        return True

    def is_favorite(self, quote: Quote) -> bool:
        return quote.quote_id in self.favorites

    def is_disliked(self, quote: Quote) -> bool:
        return quote.quote_id in self.disliked

    def is_hidden(self, quote: Quote) -> bool:
        return quote.quote_id in self.hidden

    def viewed_count(self, work: Work) -> int:
        return sum(1 for quote in work.quotes if quote.quote_id in self.viewed)

    # ------------------------------------------------------------------
    # Work and author sets
    # ------------------------------------------------------------------
    def toggle_work_exclusion(self, work_title: str) -> bool:
        return _toggle(self.excluded_works, work_title)

    def is_work_excluded(self, work_title: str) -> bool:
        return work_title in self.excluded_works

    def toggle_star(self, author_id: str) -> bool:
        return _toggle(self.starred, author_id)

    def is_starred(self, author_id: str) -> bool:
        return author_id in self.starred

    def is_book(self, author: Author) -> bool:
        """Whether an author is listed as a single book rather than a figure."""

        override = self.type_overrides.get(author.author_id)
        if override is not None:
            return override
        return author.is_single_work

    def toggle_author_type(self, author: Author) -> bool:
        value = not self.is_book(author)
        self.type_overrides[author.author_id] = value
        return value

    def clear_starred(self) -> None:
        self.starred.clear()

    def clear_hidden(self) -> None:
        self.hidden.clear()

    def clear_disliked(self) -> None:
        self.disliked.clear()

    def reset_history(self) -> None:
        self.viewed.clear()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    @classmethod
    def load(cls, store: KeyValueStore) -> "PreferenceSets":
        overrides: Dict[str, bool] = {}
        raw_overrides = store.get(TYPE_OVERRIDES_KEY)
        if isinstance(raw_overrides, dict):
            overrides = {str(key): bool(value) for key, value in raw_overrides.items()}

        return cls(
            favorites=set(store.get_list(FAVORITES_KEY)),
            starred=set(store.get_list(STARRED_KEY)),
            excluded_works=set(store.get_list(EXCLUDED_WORKS_KEY)),
            disliked=set(store.get_list(DISLIKED_KEY)),
            hidden=set(store.get_list(HIDDEN_KEY)),
            viewed=set(store.get_list(VIEWED_KEY)),
            type_overrides=overrides,
        )

    def migrate(self, aliases: Mapping[str, str]) -> bool:
        """Rewrite name-based keys from older stores through ``aliases``.

        Returns ``True`` when any key changed.
        """

        changed = False
        for name in ("favorites", "starred", "disliked", "hidden", "viewed"):
            current: Set[str] = getattr(self, name)
            migrated = _migrate(current, aliases)
            if migrated != current:
                setattr(self, name, migrated)
                changed = True
        overrides = {aliases.get(key, key): value for key, value in self.type_overrides.items()}
        if overrides != self.type_overrides:
            self.type_overrides = overrides
            changed = True
        return changed

    def save(self, store: KeyValueStore) -> None:
        store.update(
            {
                FAVORITES_KEY: sorted(self.favorites),
                VIEWED_KEY: sorted(self.viewed),
                EXCLUDED_WORKS_KEY: sorted(self.excluded_works),
                DISLIKED_KEY: sorted(self.disliked),
                HIDDEN_KEY: sorted(self.hidden),
                STARRED_KEY: sorted(self.starred),
                TYPE_OVERRIDES_KEY: dict(sorted(self.type_overrides.items())),
            }
        )
