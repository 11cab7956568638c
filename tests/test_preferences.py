from pathlib import Path

from quotefeed.kvstore import KeyValueStore
from quotefeed.models import Author, Quote, Work
from quotefeed.preferences import FAVORITES_KEY, HIDDEN_KEY, TYPE_OVERRIDES_KEY, PreferenceSets


def make_quote(sequence: int = 1) -> Quote:
    return Quote(text="Some text", author="Hegel", author_id="h", work_title="Logic", year="1812", sequence=sequence)


def test_toggles_flip_membership() -> None:
    prefs = PreferenceSets()
    quote = make_quote()

    assert prefs.toggle_favorite(quote.quote_id) is True
    assert prefs.is_favorite(quote)
    assert prefs.toggle_favorite(quote.quote_id) is False
    assert not prefs.is_favorite(quote)

    assert prefs.toggle_disliked(quote.quote_id)
    assert prefs.is_disliked(quote)
    assert prefs.toggle_star("h")
    assert prefs.is_starred("h")
    assert prefs.toggle_work_exclusion("Logic")
    assert prefs.is_work_excluded("Logic")


def test_hide_and_unhide_are_idempotent() -> None:
    prefs = PreferenceSets()
    quote = make_quote()

    prefs.hide(quote.quote_id)
    prefs.hide(quote.quote_id)
    assert prefs.is_hidden(quote)

    prefs.unhide(quote.quote_id)
    prefs.unhide(quote.quote_id)
    assert not prefs.is_hidden(quote)
    assert prefs.toggle_hidden(quote.quote_id)


def test_viewed_count_per_work() -> None:
    first, second = make_quote(1), make_quote(2)
    work = Work(title="Logic", year="1812", author="Hegel", author_id="h", quotes=[first, second])
    prefs = PreferenceSets()

    assert prefs.mark_viewed(first.quote_id)
    assert not prefs.mark_viewed(first.quote_id)
    assert prefs.viewed_count(work) == 1

    prefs.reset_history()
    assert prefs.viewed_count(work) == 0


def test_author_type_defaults_to_single_work_and_can_be_overridden() -> None:
    work = Work(title="Logic", year="1812", author="Hegel", author_id="h")
    author = Author(author_id="h", name="Hegel", works=[work])
    prefs = PreferenceSets()

    assert prefs.is_book(author)
    assert prefs.toggle_author_type(author) is False
    assert not prefs.is_book(author)
    assert prefs.toggle_author_type(author) is True


def test_clear_operations() -> None:
    prefs = PreferenceSets(starred={"a"}, hidden={"q"}, disliked={"d"})

    prefs.clear_starred()
    prefs.clear_hidden()
    prefs.clear_disliked()

    assert prefs.starred == set()
    assert prefs.hidden == set()
    assert prefs.disliked == set()


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path / "defaults.json")
    prefs = PreferenceSets(favorites={"b", "a"}, hidden={"x"}, type_overrides={"h": True})

    prefs.save(store)
    loaded = PreferenceSets.load(KeyValueStore(tmp_path / "defaults.json"))

    assert store.get(FAVORITES_KEY) == ["a", "b"]
    assert loaded.favorites == {"a", "b"}
    assert loaded.hidden == {"x"}
    assert loaded.type_overrides == {"h": True}


def test_load_ignores_malformed_values() -> None:
    store = KeyValueStore()
    store.update({HIDDEN_KEY: "not-a-list", TYPE_OVERRIDES_KEY: ["nope"]})

    prefs = PreferenceSets.load(store)

    assert prefs.hidden == set()
    assert prefs.type_overrides == {}


def test_migrate_rewrites_legacy_keys() -> None:
    quote = make_quote()
    prefs = PreferenceSets(favorites={quote.legacy_id, "unrelated"}, starred={"Hegel"}, type_overrides={"Hegel": False})

    changed = prefs.migrate({quote.legacy_id: quote.quote_id, "Hegel": "h"})

    assert changed
    assert prefs.favorites == {quote.quote_id, "unrelated"}
    assert prefs.starred == {"h"}
    assert prefs.type_overrides == {"h": False}
    assert not prefs.migrate({quote.legacy_id: quote.quote_id, "Hegel": "h"})
