"""Plain-text rendering helpers for quotes."""
from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import quote as url_quote

from .config import SearchEngine
from .models import Quote

SAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._\- ]+")

GOOGLE_SEARCH = "https://www.google.com/search?q={query}"
PERPLEXITY_SEARCH = "https://www.perplexity.ai/search?q={query}"
PERPLEXITY_APP_SEARCH = "perplexity://search?q={query}"


def sanitise_filename(value: str) -> str:
    """Return a filesystem-safe filename component derived from ``value``."""

    safe = SAFE_FILENAME_CHARS.sub(" ", value).strip()
    safe = re.sub(r"\s+", " ", safe)
    return safe or "untitled"


def search_query(text: str, author: str, work: str, year: str) -> str:
    return url_quote(f"{text} {author} {work} {year}", safe="")


def search_link(
    text: str,
    author: str,
    work: str,
    year: str,
    engine: SearchEngine = SearchEngine.GOOGLE,
    prefer_app: bool = False,
) -> str:
    """Build the search URL for a quote's text and attribution."""

    query = search_query(text, author, work, year)
    if engine is SearchEngine.PERPLEXITY:
        template = PERPLEXITY_APP_SEARCH if prefer_app else PERPLEXITY_SEARCH
        return template.format(query=query)
    return GOOGLE_SEARCH.format(query=query)


def search_url(quote: Quote, engine: SearchEngine = SearchEngine.GOOGLE, prefer_app: bool = False) -> str:
    return search_link(quote.display_text(), quote.author, quote.work_title, quote.year, engine, prefer_app)


def format_quote(
    quote: Quote,
    strip_citations: bool = True,
    strip_quotes: bool = True,
    hide_metadata: bool = False,
    position: Optional[str] = None,
) -> str:
    """Render a quote as a short block of text for terminals and clipboards."""

    lines: List[str] = [f"“{quote.display_text(strip_citations, strip_quotes)}”"]
    if not hide_metadata and not quote.is_placeholder:
        attribution = f"— {quote.author}"
        if quote.work_title:
            attribution += f", {quote.work_title}"
        if quote.year:
            attribution += f" ({quote.year})"
        lines.append(attribution)
    if position:
        lines.append(position)
    return "\n".join(lines)
