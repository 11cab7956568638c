"""Ordered author roster split into active and inactive regions by a divider."""
from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional, Sequence, Set

from .kvstore import KeyValueStore
from .models import Author
from .ordering import move_items

logger = logging.getLogger(__name__)

DIVIDER_TOKEN = "DIVIDER_TOKEN"
ROSTER_KEY = "QueueOrder"
RANDOM_ACTIVE_COUNT = 5


class AuthorRoster:
    """Author ids in reading priority order with exactly one divider.

    Authors placed before :data:`DIVIDER_TOKEN` are active and feed the main
    queue; authors after it are inactive.
    """

    def __init__(self, entries: Optional[Sequence[str]] = None) -> None:
        self.entries: List[str] = list(entries) if entries is not None else [DIVIDER_TOKEN]
        self.repaired = False
        self._ensure_single_divider()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def build(
        cls,
        authors: Sequence[Author],
        saved_tokens: Sequence[str],
        default_active: Sequence[str] = (),
    ) -> "AuthorRoster":
        """Reconcile the current authors with a previously saved order.

        Saved tokens may be author ids or, from older stores, author names.
        Tokens that match no current author are dropped and authors missing
        from the saved order are appended as inactive.
        """

        remaining = list(authors)
        entries: List[str] = []

        def take(match) -> Optional[Author]:
            for index, author in enumerate(remaining):
                if match(author):
                    return remaining.pop(index)
            return None

        if saved_tokens:
            for token in saved_tokens:
                if token == DIVIDER_TOKEN:
                    entries.append(DIVIDER_TOKEN)
                    continue
                found = take(lambda author: author.author_id == token) or take(
                    lambda author: author.name == token
                )
                if found is not None:
                    entries.append(found.author_id)
        else:
            for needle in default_active:
                found = take(lambda author: needle in author.name)
                if found is not None:
                    entries.append(found.author_id)
            entries.append(DIVIDER_TOKEN)

        entries.extend(author.author_id for author in remaining)
        return cls(entries)

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        authors: Sequence[Author],
        default_active: Sequence[str] = (),
    ) -> "AuthorRoster":
        return cls.build(authors, store.get_list(ROSTER_KEY), default_active)

    def save(self, store: KeyValueStore) -> None:
        store.set(ROSTER_KEY, self.to_tokens())

    def to_tokens(self) -> List[str]:
        return list(self.entries)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def divider_index(self) -> int:
        return self.entries.index(DIVIDER_TOKEN)

    def author_ids(self) -> List[str]:
        return [entry for entry in self.entries if entry != DIVIDER_TOKEN]

    def active_ids(self) -> Set[str]:
        active: Set[str] = set()
        for entry in self.entries:
            if entry == DIVIDER_TOKEN:
                break
            active.add(entry)
        return active

    def inactive_ids(self) -> List[str]:
        return self.entries[self.divider_index + 1 :]

    def is_active(self, author_id: str) -> bool:
        try:
            return self.entries.index(author_id) < self.divider_index
        except ValueError:
            return False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def toggle_active(self, author_id: str) -> bool:
        """Flip an author's region and return whether it is now active.

        Activated authors go to the top of the roster; deactivated ones to the
        bottom.
        """

        if author_id == DIVIDER_TOKEN or author_id not in self.entries:
            return False
        was_active = self.is_active(author_id)
        self.entries.remove(author_id)
        if was_active:
            self.entries.append(author_id)
        else:
            self.entries.insert(0, author_id)
        return not was_active

    def move(self, from_indices: Iterable[int], to_index: int) -> None:
        self.entries = move_items(self.entries, from_indices, to_index)
        self._ensure_single_divider()

    def bulk_set_active(self, author_ids: Sequence[str], enable: bool) -> None:
        targets = [author_id for author_id in author_ids if author_id in self.entries]
        target_set = set(targets)
        kept = [entry for entry in self.entries if entry not in target_set]
        self.entries = targets + kept if enable else kept + targets

    def randomize_active(
        self,
        category_ids: Sequence[str],
        count: int = RANDOM_ACTIVE_COUNT,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Activate ``count`` random authors from one category.

        Authors outside ``category_ids`` keep their region; the rest of the
        category becomes inactive.
        """

        rng = rng or random.Random()
        category = set(category_ids)
        targets = [entry for entry in self.author_ids() if entry in category]
        rng.shuffle(targets)

        active = self.active_ids()
        others = [entry for entry in self.author_ids() if entry not in category]
        new_active = [entry for entry in others if entry in active] + targets[:count]
        new_inactive = [entry for entry in others if entry not in active] + targets[count:]
        self.entries = new_active + [DIVIDER_TOKEN] + new_inactive

    def reset(self, authors: Sequence[Author], default_active: Sequence[str] = ()) -> None:
        fresh = AuthorRoster.build(authors, [], default_active)
        self.entries = fresh.entries

    def _ensure_single_divider(self) -> None:
        count = self.entries.count(DIVIDER_TOKEN)
        if count == 1:
            return
        if count == 0:
            logger.warning("Author roster had no divider; inserting one at the top")
            self.entries.insert(0, DIVIDER_TOKEN)
        else:
            logger.warning("Author roster had %d dividers; keeping the first", count)
            first = self.entries.index(DIVIDER_TOKEN)
            self.entries = self.entries[: first + 1] + [
                entry for entry in self.entries[first + 1 :] if entry != DIVIDER_TOKEN
            ]
        self.repaired = True
