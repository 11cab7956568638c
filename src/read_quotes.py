"""Command line entry point for reading and curating a quote library."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from quotefeed.app import QuoteReader
from quotefeed.config import ReaderConfig, load_config
from quotefeed.fetchers import RemoteWorkFetchError
from quotefeed.loader import needs_year
from quotefeed.models import Quote
from quotefeed.queues import RestoreResult
from quotefeed.roster import DIVIDER_TOKEN
from quotefeed.text import format_quote
from quotefeed.widget import IMAGES_DIRNAME, RefreshFrequency, WidgetProvider, WidgetSource


def _parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, help="Path to JSON configuration file", default=None)
    parser.add_argument("--works", type=Path, help="Directory holding one folder per author", default=None)
    parser.add_argument("--data", type=Path, help="Directory for preferences and saved queues", default=None)
    parser.add_argument("--verbose", action="store_true", help="Log library activity to stderr")
    commands = parser.add_subparsers(dest="command", required=True)

    feed = commands.add_parser("feed", help="Print the launch queue")
    feed.add_argument("--limit", type=int, default=10, help="Number of quotes to print")

    commands.add_parser("authors", help="List the author roster")

    toggle = commands.add_parser("toggle", help="Move an author between active and inactive")
    toggle.add_argument("author", help="Author name or id")

    favorite = commands.add_parser("favorite", help="Toggle a quote's favorite flag")
    favorite.add_argument("quote_id")

    commands.add_parser("favorites", help="List favorite quotes")

    save = commands.add_parser("save", help="Save the launch queue under a name")
    save.add_argument("name")

    commands.add_parser("queues", help="List saved queues")

    restore = commands.add_parser("restore", help="Print a saved queue")
    restore.add_argument("name", help="Saved queue name or id")
    restore.add_argument("--limit", type=int, default=10)

    import_cmd = commands.add_parser("import", help="Import a work file or an author folder")
    import_cmd.add_argument("path", type=Path)
    import_cmd.add_argument("--year", default=None, help="Year to append when the filename has none")

    fetch = commands.add_parser("fetch", help="Download a plain-text work over HTTP")
    fetch.add_argument("url")
    fetch.add_argument("--author", required=True)
    fetch.add_argument("--title", required=True)
    fetch.add_argument("--year", required=True)

    widget = commands.add_parser("widget", help="Render the widget's current quote")
    widget.add_argument(
        "--source",
        choices=[source.name.lower() for source in WidgetSource],
        default="all",
    )
    widget.add_argument("--author", action="append", default=[], help="Author id for --source specific")
    widget.add_argument("--daily", action="store_true", help="Use the daily refresh interval")
    widget.add_argument("--next", dest="current_id", default=None, help="Pick a quote other than this one")

    image = commands.add_parser("image", help="Set an author's portrait")
    image.add_argument("author", help="Author name or id")
    image.add_argument("path", type=Path)

    open_cmd = commands.add_parser("open", help="Handle a theoryapp:// link")
    open_cmd.add_argument("url")
    return parser.parse_args(list(argv))


def _combine_config(args: argparse.Namespace) -> ReaderConfig:
    try:
        file_config = load_config(args.config)
    except FileNotFoundError as exc:  # pragma: no cover - user error
        raise SystemExit(f"Configuration file not found: {args.config}") from exc
    except OSError as exc:  # pragma: no cover - user error
        raise SystemExit(f"Failed to read configuration file: {exc}") from exc
    config = ReaderConfig.from_mapping(file_config)

    if args.works is not None:
        config.works_root = args.works
    if args.data is not None:
        config.data_dir = args.data
    return config


def _print_quotes(reader: QuoteReader, quotes: Iterable[Quote], limit: int) -> None:
    items = list(quotes)
    for index, quote in enumerate(items[:limit]):
        print(
            format_quote(
                quote,
                strip_citations=reader.settings.hide_citations,
                strip_quotes=reader.settings.hide_quotes,
                position=f"[{index + 1}/{len(items)}] {quote.quote_id}",
            )
        )
        print()


def _list_authors(reader: QuoteReader) -> None:
    for entry in reader.roster.entries:
        if entry == DIVIDER_TOKEN:
            print("---- inactive ----")
            continue
        author = reader.store.author(entry)
        if author is None:
            continue
        markers = "*" if reader.preferences.is_starred(author.author_id) else " "
        kind = "book" if reader.preferences.is_book(author) else "figure"
        print(f"{markers} {author.name} ({kind}, {author.total_quote_count} quotes) {author.author_id}")


def _run_widget(reader: QuoteReader, args: argparse.Namespace) -> int:
    provider = WidgetProvider(
        reader.snapshot,
        reader.actions,
        reader.config.shared_dir / IMAGES_DIRNAME,
        rng=reader.rng,
    )
    frequency = RefreshFrequency.DAILY if args.daily else RefreshFrequency.HOURLY
    source = WidgetSource[args.source.upper()]
    if args.current_id:
        entry = provider.next_quote(args.current_id, source, args.author or None, frequency)
    else:
        entry = provider.entry(source, args.author or None, frequency)
    print(f"“{entry.quote.text}”")
    if not entry.quote.is_placeholder:
        print(f"— {entry.quote.author}, {entry.quote.work}")
        heart = "♥" if entry.quote.is_favorite else "♡"
        print(f"{heart} {entry.quote.id}")
    print(f"Next refresh: {entry.next_refresh.isoformat(timespec='minutes')}")
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config = _combine_config(args)

    reader = QuoteReader(config)
    reader.load()
    if not reader.store.is_ready and args.command not in {"import", "fetch", "widget"}:
        print(f"No quotes found under {config.works_root}.")
        return 1

    command = args.command
    if command == "feed":
        print(f"{reader.queue.name}: {len(reader.queue)} quotes")
        _print_quotes(reader, reader.queue.items, args.limit)
        return 0

    if command == "authors":
        _list_authors(reader)
        return 0

    if command == "toggle":
        author = reader.find_author(args.author)
        if author is None:
            print(f"Unknown author: {args.author}")
            return 1
        active = reader.toggle_author_active(author.author_id)
        state = "active" if active else "inactive"
        print(f"{author.name} is now {state} ({reader.active_quote_count} quotes in the feed).")
        return 0

    if command == "favorite":
        quote = reader.find_quote(args.quote_id)
        if quote is None:
            print(f"Unknown quote: {args.quote_id}")
            return 1
        added = reader.toggle_favorite(quote.quote_id)
        print(("Added to" if added else "Removed from") + f" favorites: {quote.quote_id}")
        return 0

    if command == "favorites":
        reader.load_favorites_queue()
        _print_quotes(reader, sorted(reader.queue.items, key=lambda quote: quote.sequence), len(reader.queue))
        return 0

    if command == "save":
        saved = reader.save_queue(args.name)
        print(f"Saved {len(saved.quote_ids)} quotes as {saved.name!r} ({saved.queue_id}).")
        return 0

    if command == "queues":
        if not reader.saved_queues:
            print("No saved queues.")
        for saved in reader.saved_queues:
            created = saved.created.isoformat(timespec="minutes")
            print(f"{saved.name} ({len(saved.quote_ids)} quotes, {created}) {saved.queue_id}")
        return 0

    if command == "restore":
        saved = reader.find_saved_queue(args.name)
        if saved is None:
            print(f"Unknown saved queue: {args.name}")
            return 1
        result = reader.restore_saved_queue(saved)
        if result is RestoreResult.UNRESOLVED:
            print(f"None of the quotes in {saved.name!r} exist any more.")
            return 1
        if result is RestoreResult.PARTIAL:
            print(f"Some quotes in {saved.name!r} could not be found.")
        _print_quotes(reader, reader.queue.items, args.limit)
        return 0

    if command == "import":
        path = args.path.expanduser()
        if not path.exists():
            print(f"{path} does not exist.")
            return 1
        if path.is_dir():
            destination = reader.import_author_folder(path)
        else:
            if args.year is None and needs_year(path.name):
                print(f"{path.name} has no _Year suffix; pass --year.")
                return 1
            destination = reader.import_text_file(path, args.year)
        if destination is None:
            print(f"Failed to import {path}.")
            return 1
        print(f"Imported {destination} ({len(reader.store.quotes)} quotes in library).")
        return 0

    if command == "fetch":
        try:
            destination = reader.import_remote(args.url, args.author, args.title, args.year)
        except RemoteWorkFetchError as exc:
            print(f"Error: {exc}")
            return 1
        print(f"Downloaded {destination} ({len(reader.store.quotes)} quotes in library).")
        return 0

    if command == "widget":
        return _run_widget(reader, args)

    if command == "image":
        author = reader.find_author(args.author)
        if author is None:
            print(f"Unknown author: {args.author}")
            return 1
        try:
            data = args.path.expanduser().read_bytes()
        except OSError as exc:
            print(f"Failed to read {args.path}: {exc}")
            return 1
        if not reader.update_author_image(author, data):
            print(f"Failed to store the image for {author.name}.")
            return 1
        print(f"Updated the image for {author.name}.")
        return 0

    if command == "open":
        copied = reader.handle_deep_link(args.url)
        if copied is not None:
            print(copied)
        elif reader.queue.current is not None:
            print(format_quote(reader.queue.current))
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
