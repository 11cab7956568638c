"""Parsing of ``theoryapp://`` links raised by the widget."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote, unquote

SCHEME = "theoryapp://"


class LinkAction(str, Enum):
    OPEN = "quote"
    COPY = "copy"
    FAVORITE = "favorite"
    NEXT = "next"


@dataclass(frozen=True)
class DeepLink:
    action: LinkAction
    quote_id: Optional[str] = None


def quote_link(action: LinkAction, quote_id: str) -> str:
    return f"{SCHEME}{action.value}/{quote(quote_id, safe='')}"


def parse_deep_link(url: str) -> Optional[DeepLink]:
    """Return the action encoded in ``url`` or ``None`` for foreign links."""

    if not url.startswith(SCHEME):
        return None
    path = url[len(SCHEME) :]
    head, _, rest = path.partition("/")
    if head == LinkAction.NEXT.value:
        return DeepLink(LinkAction.NEXT)
    for action in (LinkAction.OPEN, LinkAction.COPY, LinkAction.FAVORITE):
        if head == action.value:
            quote_id = unquote(rest)
            if not quote_id:
                return None
            return DeepLink(action, quote_id)
    return None
