"""Loaders that turn a folder of plain-text works into a quote library."""
from __future__ import annotations

import logging
import re
import shutil
import string
import uuid
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .models import Author, Library, Quote, Work

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]

AUTHOR_ID_FILE = ".author_id"
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
MIN_QUOTE_LENGTH = 5
UNKNOWN_YEAR = "Unknown Year"
IMPORTED_AUTHOR = "Imported"
AUTHOR_NAMESPACE = uuid.UUID("6f1c1d52-8d1e-4e7c-9a43-3f0b2c8f5a10")

SATIRE_PATTERN = re.compile("satire", re.IGNORECASE)
YEAR_PATTERN = re.compile(r"\d{4}")
TITLE_TRIM = string.punctuation + string.whitespace


def parse_work_filename(stem: str) -> Tuple[str, str, bool]:
    """Split ``Title_Year`` into ``(title, year, is_satire)``."""

    is_satire = bool(SATIRE_PATTERN.search(stem))
    components = stem.split("_")
    if len(components) < 2:
        title, year = stem, UNKNOWN_YEAR
    else:
        title, year = "_".join(components[:-1]), components[-1]
    title = SATIRE_PATTERN.sub("", title).strip(TITLE_TRIM)
    return title, year.strip() or UNKNOWN_YEAR, is_satire


def needs_year(filename: str) -> bool:
    """Return ``True`` when an imported filename carries no ``_Year`` suffix."""

    return not ("_" in filename and YEAR_PATTERN.search(filename))


def author_id_for(author_dir: Path) -> str:
    """Return the stable identifier stored beside an author's works.

    A generated id is written on first use so that renaming the folder keeps
    the author's preferences attached. When the folder is read-only the id is
    derived from the folder name instead.
    """

    marker = author_dir / AUTHOR_ID_FILE
    try:
        existing = marker.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        existing = ""
    except OSError as exc:
        logger.warning("Could not read author id from %s: %s", marker, exc)
        existing = ""
    if existing:
        return existing

    generated = str(uuid.uuid4())
    try:
        marker.write_text(generated + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not store author id in %s: %s", marker, exc)
        return str(uuid.uuid5(AUTHOR_NAMESPACE, author_dir.name))
    return generated


def find_author_image(author_dir: Path, files: List[Path]) -> Optional[str]:
    images = [path for path in files if path.suffix.lower() in IMAGE_EXTENSIONS]
    for path in images:
        if path.stem.lower() == author_dir.name.lower():
            return str(path)
    if images:
        return str(images[0])
    return None


class WorksLoader:
    """Parses a works directory laid out as ``<Author>/<Title>_<Year>.txt``."""

    def load(self, root: Path, progress: Optional[ProgressCallback] = None) -> Library:
        root = root.expanduser()
        library = Library()
        if not root.is_dir():
            logger.warning("Works directory %s does not exist", root)
            return library

        author_dirs = sorted(
            (path for path in root.iterdir() if path.is_dir() and not path.name.startswith(".")),
            key=lambda path: path.name,
        )
        total = float(len(author_dirs)) or 1.0
        sequence = 1

        for index, author_dir in enumerate(author_dirs):
            try:
                files = sorted(author_dir.iterdir(), key=lambda path: path.name)
            except OSError as exc:
                logger.warning("Skipping unreadable author folder %s: %s", author_dir, exc)
                continue

            author_id = author_id_for(author_dir)
            author = Author(
                author_id=author_id,
                name=author_dir.name,
                image_path=find_author_image(author_dir, files),
            )

            for work_path in files:
                if work_path.suffix != ".txt" or work_path.name.startswith("."):
                    continue
                if progress is not None:
                    progress(index / total, work_path.stem)
                work, sequence = self._parse_work(work_path, author, sequence)
                if work is None:
                    continue
                author.works.append(work)
                library.works.append(work)
                library.quotes.extend(work.quotes)

            if author.works:
                library.authors.append(author)

        return library

    def _parse_work(self, path: Path, author: Author, sequence: int) -> Tuple[Optional[Work], int]:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable work %s: %s", path, exc)
            return None, sequence

        title, year, is_satire = parse_work_filename(path.stem)
        lines = content.splitlines()
        source_url: Optional[str] = None
        if lines and ("http://" in lines[0] or "https://" in lines[0]):
            source_url = lines.pop(0).strip()

        quotes: List[Quote] = []
        for line in lines:
            text = line.strip()
            if len(text) < MIN_QUOTE_LENGTH:
                continue
            quotes.append(
                Quote(
                    text=text,
                    author=author.name,
                    author_id=author.author_id,
                    work_title=title,
                    year=year,
                    sequence=sequence,
                    is_satire=is_satire,
                )
            )
            sequence += 1

        work = Work(
            title=title,
            year=year,
            author=author.name,
            author_id=author.author_id,
            source_url=source_url,
            is_satire=is_satire,
            quotes=quotes,
        )
        return work, sequence


def seed_works(bundle: Path, works_root: Path) -> int:
    """Copy bundled author folders into ``works_root`` without overwriting.

    Returns the number of files copied.
    """

    works_root.mkdir(parents=True, exist_ok=True)
    if not bundle.is_dir():
        return 0
    copied = 0
    for author_dir in sorted(bundle.iterdir()):
        if not author_dir.is_dir():
            continue
        destination = works_root / author_dir.name
        destination.mkdir(exist_ok=True)
        for source in author_dir.iterdir():
            target = destination / source.name
            if target.exists() or not source.is_file():
                continue
            try:
                shutil.copy2(source, target)
            except OSError as exc:
                logger.warning("Could not copy %s: %s", source, exc)
                continue
            copied += 1
    return copied


def import_text_file(path: Path, works_root: Path, manual_year: Optional[str] = None) -> Optional[Path]:
    """Copy a single work file into the library, replacing any existing copy."""

    stem = path.stem
    components = stem.split("_")
    author_name = components[0] if len(components) >= 2 else IMPORTED_AUTHOR
    final_name = stem
    if manual_year and f"_{manual_year}" not in stem:
        final_name = f"{stem}_{manual_year}"

    author_dir = works_root / author_name
    destination = author_dir / f"{final_name}.txt"
    try:
        author_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, destination)
    except OSError as exc:
        logger.warning("Could not import %s: %s", path, exc)
        return None
    return destination


def import_author_folder(path: Path, works_root: Path) -> Optional[Path]:
    """Copy an author folder into the library, replacing any existing one.

    The replaced folder's author id is carried over unless the incoming
    folder brings its own, so quote ids survive a re-import.
    """

    destination = works_root / path.name
    previous_id = ""
    if destination.is_dir():
        previous_id = author_id_for(destination)
    try:
        if destination.exists():
            shutil.rmtree(destination)
        shutil.copytree(path, destination)
    except OSError as exc:
        logger.warning("Could not import folder %s: %s", path, exc)
        return None

    marker = destination / AUTHOR_ID_FILE
    if previous_id and not marker.exists():
        try:
            marker.write_text(previous_id + "\n", encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not keep author id in %s: %s", marker, exc)
    return destination
