import json
from pathlib import Path

from quotefeed.kvstore import KeyValueStore


def test_writes_are_visible_to_a_second_store(tmp_path: Path) -> None:
    path = tmp_path / "shared" / "snapshot.json"
    writer = KeyValueStore(path)
    reader = KeyValueStore(path)

    writer.set("widget_favorites", ["a", "b"])
    assert reader.get("widget_favorites") is None

    reader.reload()
    assert reader.get_list("widget_favorites") == ["a", "b"]
    assert not path.with_name("snapshot.json.tmp").exists()


def test_update_remove_and_keys(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path / "defaults.json")

    store.update({"one": 1, "two": [2]})
    store.remove("one")
    store.remove("missing")

    assert sorted(store.keys()) == ["two"]
    assert "two" in store
    assert "one" not in store
    assert json.loads((tmp_path / "defaults.json").read_text(encoding="utf-8")) == {"two": [2]}


def test_unreadable_file_is_treated_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "defaults.json"
    path.write_text("{ truncated", encoding="utf-8")

    store = KeyValueStore(path)

    assert list(store.keys()) == []
    assert store.get("anything", "fallback") == "fallback"


def test_get_list_coerces_and_rejects_non_lists() -> None:
    store = KeyValueStore()
    store.update({"numbers": [1, 2], "text": "abc"})

    assert store.get_list("numbers") == ["1", "2"]
    assert store.get_list("text") == []
    assert store.get_list("absent") == []
