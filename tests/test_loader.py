from pathlib import Path

from quotefeed.loader import (
    AUTHOR_ID_FILE,
    WorksLoader,
    import_author_folder,
    import_text_file,
    needs_year,
    parse_work_filename,
    seed_works,
)


def test_parse_work_filename_splits_title_and_year() -> None:
    assert parse_work_filename("Capital_1867") == ("Capital", "1867", False)
    assert parse_work_filename("The_Prince_1532") == ("The_Prince", "1532", False)
    assert parse_work_filename("Emma SATIRE_1815") == ("Emma", "1815", True)
    assert parse_work_filename("Untitled") == ("Untitled", "Unknown Year", False)


def test_loader_builds_authors_works_and_quotes(works_root: Path) -> None:
    library = WorksLoader().load(works_root)

    assert [author.name for author in library.authors] == ["Jane Austen", "Karl Marx", "Plato"]
    assert len(library.quotes) == 7
    assert [quote.sequence for quote in library.quotes] == [1, 2, 3, 4, 5, 6, 7]

    marx = library.authors[1]
    capital, manifesto = marx.works
    assert capital.title == "Capital"
    assert capital.year == "1867"
    assert capital.source_url == "https://example.org/capital"
    assert [quote.text for quote in capital.quotes] == [
        "A commodity appears at first sight a very trivial thing.",
        "Accumulation of wealth at one pole is accumulation of misery at the other.",
    ]
    assert manifesto.source_url is None
    assert marx.image_path is not None and marx.image_path.endswith("Karl Marx.jpg")

    emma = library.authors[0].works[0]
    assert emma.is_satire
    assert all(quote.is_satire for quote in emma.quotes)


def test_loader_reports_progress(works_root: Path) -> None:
    seen = []
    WorksLoader().load(works_root, progress=lambda fraction, name: seen.append((fraction, name)))

    assert [name for _, name in seen] == ["Emma Satire_1815", "Capital_1867", "Manifesto_1848", "Republic_-380"]
    assert all(0.0 <= fraction < 1.0 for fraction, _ in seen)


def test_quote_ids_are_stable_across_reloads(works_root: Path) -> None:
    first = WorksLoader().load(works_root)
    second = WorksLoader().load(works_root)

    assert [q.quote_id for q in first.quotes] == [q.quote_id for q in second.quotes]
    assert (works_root / "Plato" / AUTHOR_ID_FILE).exists()


def test_author_id_survives_folder_rename(works_root: Path) -> None:
    before = WorksLoader().load(works_root)
    plato_id = before.authors[2].author_id

    (works_root / "Plato").rename(works_root / "Plato of Athens")
    after = WorksLoader().load(works_root)

    renamed = [author for author in after.authors if author.name == "Plato of Athens"][0]
    assert renamed.author_id == plato_id


def test_missing_root_yields_empty_library(tmp_path: Path) -> None:
    library = WorksLoader().load(tmp_path / "missing")

    assert library.quotes == []
    assert library.authors == []


def test_needs_year() -> None:
    assert not needs_year("Capital_1867.txt")
    assert needs_year("Capital.txt")
    assert needs_year("Capital_first.txt")


def test_import_text_file_uses_author_prefix_and_manual_year(tmp_path: Path) -> None:
    works = tmp_path / "Works"
    source = tmp_path / "Rosa Luxemburg_Reform or Revolution.txt"
    source.write_text("Those who do not move do not notice their chains.\n", encoding="utf-8")

    destination = import_text_file(source, works, manual_year="1900")

    assert destination == works / "Rosa Luxemburg" / "Rosa Luxemburg_Reform or Revolution_1900.txt"
    assert destination.read_text(encoding="utf-8").startswith("Those who")


def test_import_text_file_without_prefix_goes_to_imported(tmp_path: Path) -> None:
    works = tmp_path / "Works"
    source = tmp_path / "Notes.txt"
    source.write_text("A line long enough to count.\n", encoding="utf-8")

    destination = import_text_file(source, works)

    assert destination == works / "Imported" / "Notes.txt"


def test_import_author_folder_replaces_existing(tmp_path: Path, works_root: Path) -> None:
    incoming = tmp_path / "incoming" / "Plato"
    incoming.mkdir(parents=True)
    (incoming / "Symposium_-385.txt").write_text("Love is born into every human being.\n", encoding="utf-8")

    destination = import_author_folder(incoming, works_root)

    assert destination == works_root / "Plato"
    assert sorted(path.name for path in destination.glob("*.txt")) == ["Symposium_-385.txt"]


def test_seed_works_copies_only_missing_files(tmp_path: Path, works_root: Path) -> None:
    target = tmp_path / "Documents" / "Works"
    (target / "Plato").mkdir(parents=True)
    (target / "Plato" / "Republic_-380.txt").write_text("Edited by the user locally.\n", encoding="utf-8")

    copied = seed_works(works_root, target)

    assert copied > 0
    assert (target / "Karl Marx" / "Capital_1867.txt").exists()
    assert (target / "Plato" / "Republic_-380.txt").read_text(encoding="utf-8") == "Edited by the user locally.\n"


def test_reimporting_author_folder_keeps_quote_ids(tmp_path: Path, works_root: Path) -> None:
    before = WorksLoader().load(works_root)
    incoming = tmp_path / "incoming" / "Plato"
    incoming.mkdir(parents=True)
    (incoming / "Republic_-380.txt").write_bytes((works_root / "Plato" / "Republic_-380.txt").read_bytes())

    import_author_folder(incoming, works_root)
    after = WorksLoader().load(works_root)

    assert [q.quote_id for q in after.quotes] == [q.quote_id for q in before.quotes]
    assert not (incoming / AUTHOR_ID_FILE).exists()


def test_reimport_prefers_incoming_author_id(tmp_path: Path, works_root: Path) -> None:
    WorksLoader().load(works_root)
    incoming = tmp_path / "incoming" / "Plato"
    incoming.mkdir(parents=True)
    (incoming / "Republic_-380.txt").write_text("The beginning is the most important part.\n", encoding="utf-8")
    (incoming / AUTHOR_ID_FILE).write_text("plato-from-backup\n", encoding="utf-8")

    import_author_folder(incoming, works_root)

    assert (works_root / "Plato" / AUTHOR_ID_FILE).read_text(encoding="utf-8").strip() == "plato-from-backup"
