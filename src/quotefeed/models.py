"""Data models for the quote library."""
from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

CITATION_PATTERN = re.compile(r"\[(?:source: )?\d+\]")

PLACEHOLDER_ID = "0"
PLACEHOLDER_TEXT = "Open App to Load Data"
PLACEHOLDER_AUTHOR = "Theory"


@dataclass(frozen=True)
class Quote:
    """A single line of a work, attributed to its author."""

    text: str
    author: str
    author_id: str
    work_title: str
    year: str
    sequence: int = 0
    is_satire: bool = False
    quote_id: str = field(init=False)

    def __post_init__(self) -> None:
        # Derived from content position only so ids survive a re-import.
        object.__setattr__(self, "quote_id", f"{self.author_id}-{self.work_title}-{self.sequence}")

    @property
    def legacy_id(self) -> str:
        """Identifier used by stores written before authors had ids."""

        return f"{self.author}-{self.work_title}-{self.sequence}"

    @property
    def is_placeholder(self) -> bool:
        return self.quote_id == PLACEHOLDER_ID

    def display_text(self, strip_citations: bool = True, strip_quotes: bool = True) -> str:
        text = self.text
        if strip_citations:
            text = CITATION_PATTERN.sub("", text).strip()
        if strip_quotes:
            if text.startswith('"'):
                text = text[1:]
            if text.endswith('"'):
                text = text[:-1]
        return text.strip()

    @classmethod
    def placeholder(cls) -> "Quote":
        quote = cls(
            text=PLACEHOLDER_TEXT,
            author=PLACEHOLDER_AUTHOR,
            author_id=PLACEHOLDER_ID,
            work_title="",
            year="",
        )
        object.__setattr__(quote, "quote_id", PLACEHOLDER_ID)
        return quote


@dataclass
class Work:
    """A text file of quotes belonging to one author."""

    title: str
    year: str
    author: str
    author_id: str
    source_url: Optional[str] = None
    is_satire: bool = False
    quotes: List[Quote] = field(default_factory=list)


@dataclass
class Author:
    """An author folder and the works found inside it."""

    author_id: str
    name: str
    image_path: Optional[str] = None
    works: List[Work] = field(default_factory=list)

    @property
    def is_single_work(self) -> bool:
        return len(self.works) == 1

    @property
    def total_quote_count(self) -> int:
        return sum(len(work.quotes) for work in self.works)

    @property
    def quotes(self) -> List[Quote]:
        return [quote for work in self.works for quote in work.quotes]


@dataclass
class Library:
    """Result of a single load pass over the works directory."""

    quotes: List[Quote] = field(default_factory=list)
    works: List[Work] = field(default_factory=list)
    authors: List[Author] = field(default_factory=list)


@dataclass
class SavedQueue:
    """A named snapshot of quote identifiers."""

    name: str
    quote_ids: List[str]
    queue_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "id": self.queue_id,
            "name": self.name,
            "quote_ids": list(self.quote_ids),
            "created": self.created.isoformat(timespec="seconds"),
        }

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "SavedQueue":
        created = datetime.fromisoformat(str(data["created"]))
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return cls(
            name=str(data["name"]),
            quote_ids=[str(value) for value in data.get("quote_ids") or []],
            queue_id=str(data["id"]),
            created=created,
        )
