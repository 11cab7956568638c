from pathlib import Path
from typing import Dict, List

import pytest

SAMPLE_WORKS: Dict[str, Dict[str, List[str]]] = {
    "Jane Austen": {
        "Emma Satire_1815.txt": [
            "It is a truth universally acknowledged in satire.",
        ],
    },
    "Karl Marx": {
        "Capital_1867.txt": [
            "https://example.org/capital",
            "A commodity appears at first sight a very trivial thing.",
            "tiny",
            "",
            "Accumulation of wealth at one pole is accumulation of misery at the other.",
        ],
        "Manifesto_1848.txt": [
            '"The history of all hitherto existing society is the history of class struggles." [3]',
            "Workers of the world, unite!",
        ],
    },
    "Plato": {
        "Republic_-380.txt": [
            "The beginning is the most important part of the work.",
            "Wise men speak because they have something to say.",
        ],
    },
}


def write_works(root: Path, works: Dict[str, Dict[str, List[str]]] = SAMPLE_WORKS) -> Path:
    for author, files in works.items():
        author_dir = root / author
        author_dir.mkdir(parents=True, exist_ok=True)
        for name, lines in files.items():
            (author_dir / name).write_text("\n".join(lines) + "\n", encoding="utf-8")
    return root


@pytest.fixture
def works_root(tmp_path: Path) -> Path:
    root = write_works(tmp_path / "Works")
    (root / "Karl Marx" / "Karl Marx.jpg").write_bytes(b"\xff\xd8fake-jpeg")
    (root / "Empty Author").mkdir()
    (root / ".cache").mkdir()
    (root / ".cache" / "Stray_2000.txt").write_text("Should never be loaded at all.\n", encoding="utf-8")
    return root
