"""Tests for the remote work fetcher using mocked HTTP sessions."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List

import pytest
import requests

from quotefeed.fetchers import RemoteWorkFetchError, RemoteWorkFetcher
from quotefeed.loader import WorksLoader


class FakeResponse:
    def __init__(self, text: str = "", *, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code


class FakeSession:
    def __init__(self, responses: Iterable[object]) -> None:
        self.calls: List[tuple[str, Dict[str, str] | None, float | None]] = []
        self._responses = list(responses)

    def get(self, url: str, headers: Dict[str, str] | None = None, timeout: float | None = None) -> FakeResponse:
        self.calls.append((url, headers, timeout))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_fetch_stores_work_with_source_line(tmp_path: Path) -> None:
    session = FakeSession([FakeResponse("First quote of the work.\r\nSecond quote of the work.  \n")])
    fetcher = RemoteWorkFetcher(session=session, timeout=5.0)

    destination = fetcher.fetch("https://example.org/manifesto.txt", tmp_path, "Karl Marx", "The Manifesto", "1848")

    assert destination == tmp_path / "Karl Marx" / "The Manifesto_1848.txt"
    assert destination.read_text(encoding="utf-8") == (
        "https://example.org/manifesto.txt\nFirst quote of the work.\nSecond quote of the work.\n"
    )
    url, headers, timeout = session.calls[0]
    assert url == "https://example.org/manifesto.txt"
    assert headers is not None and "User-Agent" in headers
    assert timeout == 5.0

    library = WorksLoader().load(tmp_path)
    work = library.works[0]
    assert work.source_url == "https://example.org/manifesto.txt"
    assert work.title == "The Manifesto"
    assert len(work.quotes) == 2


def test_destination_sanitises_names(tmp_path: Path) -> None:
    destination = RemoteWorkFetcher.destination_for(tmp_path, "A/B", "Title_with_underscores?", "18_48")

    assert destination.parent == tmp_path / "A B"
    assert destination.name == "Title with underscores_18 48.txt"


def test_unsupported_scheme_is_rejected() -> None:
    fetcher = RemoteWorkFetcher(session=FakeSession([]))

    with pytest.raises(RemoteWorkFetchError):
        fetcher.fetch_text("ftp://example.org/work.txt")


def test_http_error_status_raises() -> None:
    fetcher = RemoteWorkFetcher(session=FakeSession([FakeResponse("missing", status_code=404)]))

    with pytest.raises(RemoteWorkFetchError) as excinfo:
        fetcher.fetch_text("https://example.org/missing.txt")

    assert "404" in str(excinfo.value)


def test_empty_document_raises() -> None:
    fetcher = RemoteWorkFetcher(session=FakeSession([FakeResponse("   \n")]))

    with pytest.raises(RemoteWorkFetchError):
        fetcher.fetch_text("https://example.org/blank.txt")


def test_network_failure_is_wrapped() -> None:
    fetcher = RemoteWorkFetcher(session=FakeSession([requests.ConnectionError("offline")]))

    with pytest.raises(RemoteWorkFetchError) as excinfo:
        fetcher.fetch_text("https://example.org/work.txt")

    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)
