"""Catalog loader: reads book records from YAML or JSON files."""

import json
import logging
import re
from pathlib import Path
from typing import Any

import chardet
import yaml
from pydantic import ValidationError

from libraryqa.errors import CorpusUnavailable
from libraryqa.models.book import Book, Section

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS: dict[str, str] = {
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
}

_HEADING = re.compile(r"^#{1,6}\s+(.+?)\s*#*\s*$")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


def read_text(file_path: Path) -> str:
    """Read a text file, detecting the encoding when it is not UTF-8.

    Args:
        file_path: Path to the text file.

    Returns:
        The file content as a string.
    """
    try:
        return file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        pass

    raw_bytes = file_path.read_bytes()
    detected = chardet.detect(raw_bytes)
    encoding = detected.get("encoding") or "utf-8"
    confidence = detected.get("confidence") or 0

    if confidence < 0.7:
        logger.warning(
            "Low confidence encoding detection for %s: %s (%.0f%%)",
            file_path,
            encoding,
            confidence * 100,
        )

    try:
        return raw_bytes.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        logger.error("Failed to decode file: %s", file_path)
        return raw_bytes.decode("utf-8", errors="replace")


def parse_sections(text: str, default_heading: str) -> list[Section]:
    """Split a Markdown-like book text into sections and paragraphs.

    A ``#`` heading line opens a new section; blank lines separate
    paragraphs. Lines within a paragraph are joined with spaces. Text
    before the first heading goes into a section named
    ``default_heading``.

    Args:
        text: Full book text.
        default_heading: Heading for any leading untitled section.

    Returns:
        Sections in document order (possibly with no paragraphs).
    """
    sections: list[tuple[str, list[str]]] = []
    heading: str | None = None
    buffer: list[str] = []

    def flush() -> None:
        if heading is None and not "".join(buffer).strip():
            return
        body = "\n".join(buffer)
        paragraphs = [" ".join(p.split()) for p in _PARAGRAPH_SPLIT.split(body) if p.strip()]
        sections.append((heading if heading is not None else default_heading, paragraphs))

    for line in text.splitlines():
        match = _HEADING.match(line)
        if match:
            flush()
            heading = match.group(1)
            buffer = []
        else:
            buffer.append(line)
    flush()

    return [Section(heading=h, paragraphs=tuple(p)) for h, p in sections]


def load_catalog(catalog_path: str | Path) -> list[Book]:
    """Load every book of the catalog, in file order.

    Each entry holds the book metadata and either inline ``sections``
    (``heading`` + ``paragraphs``) or a ``source`` text file resolved
    relative to the catalog.

    Args:
        catalog_path: Path to a ``.yaml``, ``.yml`` or ``.json`` catalog.

    Returns:
        The books in catalog order.

    Raises:
        CorpusUnavailable: If the catalog is missing, unreadable, empty,
            malformed, or contains duplicate book ids.
    """
    path = Path(catalog_path)
    if not path.exists():
        raise CorpusUnavailable(f"Catalog not found: {path}")

    file_format = SUPPORTED_FORMATS.get(path.suffix.lower())
    if file_format is None:
        raise CorpusUnavailable(
            f"Unsupported catalog format: '{path.suffix}'. "
            f"Supported: {', '.join(SUPPORTED_FORMATS.keys())}"
        )

    raw = read_text(path)
    try:
        data = yaml.safe_load(raw) if file_format == "yaml" else json.loads(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise CorpusUnavailable(f"Catalog {path} could not be parsed: {exc}") from exc

    entries = data.get("books") if isinstance(data, dict) else data
    if not isinstance(entries, list) or not entries:
        raise CorpusUnavailable(f"Catalog {path} contains no books")

    books: list[Book] = []
    seen: set[str] = set()
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise CorpusUnavailable(f"Catalog entry {position} is not a mapping")
        book = _build_book(entry, path.parent, position)
        if book.id in seen:
            raise CorpusUnavailable(f"Duplicate book id in catalog: {book.id}")
        seen.add(book.id)
        books.append(book)

    logger.info("Loaded %d books from %s", len(books), path)
    return books


def _build_book(entry: dict[str, Any], base_dir: Path, position: int) -> Book:
    fields = dict(entry)
    source = fields.pop("source", None)
    if source is not None and "sections" not in fields:
        source_path = base_dir / str(source)
        if not source_path.exists():
            raise CorpusUnavailable(f"Book source not found: {source_path}")
        fields["sections"] = parse_sections(read_text(source_path), str(fields.get("title", "")))

    if "id" in fields:
        fields["id"] = str(fields["id"])
    fields.setdefault("slug", fields.get("id", ""))
    try:
        return Book(**fields)
    except ValidationError as exc:
        raise CorpusUnavailable(f"Catalog entry {position} is invalid: {exc}") from exc
