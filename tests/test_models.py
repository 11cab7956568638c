from datetime import datetime, timezone

from quotefeed.models import Author, Quote, SavedQueue, Work


def make_quote(**kwargs) -> Quote:
    base = {
        "text": "Workers of the world, unite!",
        "author": "Karl Marx",
        "author_id": "a-1",
        "work_title": "Manifesto",
        "year": "1848",
        "sequence": 4,
    }
    base.update(kwargs)
    return Quote(**base)


def test_quote_id_is_derived_from_author_work_and_sequence() -> None:
    first = make_quote()
    second = make_quote(text="Different text, same position.")

    assert first.quote_id == "a-1-Manifesto-4"
    assert first.quote_id == second.quote_id
    assert first.legacy_id == "Karl Marx-Manifesto-4"
    assert make_quote(sequence=5).quote_id != first.quote_id


def test_display_text_strips_citations_and_surrounding_quotes() -> None:
    quote = make_quote(text='"History repeats itself [3] first as tragedy [source: 12]"')

    assert quote.display_text() == "History repeats itself  first as tragedy"
    assert quote.display_text(strip_citations=False, strip_quotes=False) == quote.text


def test_placeholder_quote_is_recognisable() -> None:
    placeholder = Quote.placeholder()

    assert placeholder.is_placeholder
    assert placeholder.quote_id == "0"
    assert placeholder.text == "Open App to Load Data"
    assert not make_quote().is_placeholder


def test_author_single_work_and_quote_count() -> None:
    work = Work(title="Manifesto", year="1848", author="Karl Marx", author_id="a-1", quotes=[make_quote()])
    author = Author(author_id="a-1", name="Karl Marx", works=[work])

    assert author.is_single_work
    assert author.total_quote_count == 1
    author.works.append(Work(title="Capital", year="1867", author="Karl Marx", author_id="a-1"))
    assert not author.is_single_work


def test_saved_queue_mapping_keeps_order_and_timestamp() -> None:
    created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    saved = SavedQueue(name="Morning", quote_ids=["b", "a", "c"], queue_id="q-1", created=created)

    restored = SavedQueue.from_mapping(saved.to_mapping())

    assert restored.quote_ids == ["b", "a", "c"]
    assert restored.created == created
    assert restored.queue_id == "q-1"
