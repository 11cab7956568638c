"""Download plain-text works over HTTP into the works directory."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import requests

from quotefeed.text import sanitise_filename


class RemoteWorkFetchError(RuntimeError):
    """Raised when a remote work cannot be downloaded or stored."""


class RemoteWorkFetcher:
    """Fetch a work published as a plain-text document.

    The downloaded text is stored as ``<works_root>/<author>/<title>_<year>.txt``
    with the source URL on the first line, which the works loader records as
    the work's source.

    Parameters
    ----------
    session:
        Optional ``requests.Session`` instance. Primarily intended for tests so
        that HTTP requests can be mocked.
    timeout:
        Seconds to wait for the server before giving up.
    """

    def __init__(self, *, session: Optional["requests.Session"] = None, timeout: float = 30.0) -> None:
        self._session = session if session is not None else requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch_text(self, url: str) -> str:
        """Return the body of ``url`` decoded as text."""

        if not url.startswith(("http://", "https://")):
            raise RemoteWorkFetchError(f"Unsupported URL: {url}")
        try:
            response = self._session.get(url, headers=self._default_headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RemoteWorkFetchError(f"Request for {url} failed: {exc}") from exc
        self._ensure_success(url, response)
        text = getattr(response, "text", "")
        if not isinstance(text, str) or not text.strip():
            raise RemoteWorkFetchError(f"{url} returned an empty document.")
        return text

    def fetch(self, url: str, works_root: Path, author: str, title: str, year: str) -> Path:
        """Download ``url`` and store it as a work of ``author``."""

        text = self.fetch_text(url)
        destination = self.destination_for(works_root, author, title, year)
        body = "\n".join(line.rstrip() for line in text.splitlines())
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(f"{url}\n{body}\n", encoding="utf-8")
        except OSError as exc:
            raise RemoteWorkFetchError(f"Failed to store {destination}: {exc}") from exc
        return destination

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def destination_for(works_root: Path, author: str, title: str, year: str) -> Path:
        author_dir = works_root / sanitise_filename(author)
        safe_title = sanitise_filename(title).replace("_", " ")
        safe_year = sanitise_filename(year).replace("_", " ")
        return author_dir / f"{safe_title}_{safe_year}.txt"

    @property
    def _default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": "quotefeed/1.0",
            "Accept": "text/plain, text/*;q=0.9, */*;q=0.1",
        }

    def _ensure_success(self, url: str, response: object) -> None:
        status = getattr(response, "status_code", None)
        if status is None or status >= 400:
            raise RemoteWorkFetchError(f"Request for {url} failed with status code {status}.")
