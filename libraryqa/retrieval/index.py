"""In-memory inverted index over catalog paragraphs."""

import logging
import threading
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from libraryqa.errors import CorpusMalformed, CorpusUnavailable
from libraryqa.models.book import Book
from libraryqa.models.query_result import ParagraphRef
from libraryqa.retrieval.tokenizer import normalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Posting:
    """One occurrence of a term: which paragraph, and how often."""

    paragraph_id: int
    frequency: int


@dataclass(frozen=True)
class IndexedParagraph:
    """A paragraph as the index sees it."""

    ref: ParagraphRef
    book_title: str
    section_heading: str
    text: str
    length: int
    terms: frozenset[str]


class Index:
    """Read-only retrieval structure built from one catalog snapshot.

    Paragraph ids are positions in document order, so sorting by id is
    sorting by (book insertion order, section, paragraph).
    """

    def __init__(
        self,
        paragraphs: Sequence[IndexedParagraph],
        postings: Mapping[str, tuple[Posting, ...]],
        book_ids: Sequence[str],
        skipped: int = 0,
    ) -> None:
        self._paragraphs = tuple(paragraphs)
        self._postings = MappingProxyType(dict(postings))
        self._book_ids = tuple(book_ids)
        self._book_id_set = frozenset(book_ids)
        self.skipped = skipped

    @property
    def paragraphs(self) -> tuple[IndexedParagraph, ...]:
        return self._paragraphs

    @property
    def book_ids(self) -> tuple[str, ...]:
        return self._book_ids

    @property
    def total_paragraphs(self) -> int:
        return len(self._paragraphs)

    @property
    def vocabulary_size(self) -> int:
        return len(self._postings)

    def has_book(self, book_id: str) -> bool:
        return book_id in self._book_id_set

    def postings(self, term: str) -> tuple[Posting, ...]:
        """Return all occurrences of a term (empty if unseen)."""
        return self._postings.get(term, ())

    def document_frequency(self, term: str) -> int:
        """Number of paragraphs containing the term."""
        return len(self._postings.get(term, ()))

    def paragraph(self, paragraph_id: int) -> IndexedParagraph:
        return self._paragraphs[paragraph_id]

    def section_paragraph_ids(self, paragraph_id: int) -> list[int]:
        """Ids of all indexed paragraphs sharing a section with the given one."""
        ref = self._paragraphs[paragraph_id].ref
        siblings: list[int] = []
        # Paragraphs of one section are contiguous in id order.
        start = paragraph_id
        while start > 0 and self._same_section(self._paragraphs[start - 1].ref, ref):
            start -= 1
        pos = start
        while pos < len(self._paragraphs) and self._same_section(self._paragraphs[pos].ref, ref):
            siblings.append(pos)
            pos += 1
        return siblings

    @staticmethod
    def _same_section(a: ParagraphRef, b: ParagraphRef) -> bool:
        return a.book_order == b.book_order and a.section_index == b.section_index


def build_index(books: Iterable[Book]) -> Index:
    """Build an Index from a complete catalog.

    Every paragraph is normalized once; for each distinct token the
    paragraph and its within-paragraph frequency are recorded. Sections
    without paragraphs and blank paragraphs are skipped with a warning
    and do not abort the build.

    Args:
        books: Books in catalog (insertion) order.

    Returns:
        A fully built, immutable Index.

    Raises:
        CorpusUnavailable: If no books are supplied at all.
    """
    books = list(books)
    if not books:
        raise CorpusUnavailable("Cannot build an index from an empty catalog")

    paragraphs: list[IndexedParagraph] = []
    occurrences: dict[str, list[Posting]] = {}
    book_ids: list[str] = []
    skipped = 0

    for book_order, book in enumerate(books):
        book_ids.append(book.id)
        try:
            _check_book(book)
        except CorpusMalformed as exc:
            logger.warning("Skipping book: %s", exc)
            skipped += 1
            continue

        for section_index, section in enumerate(book.sections):
            if not section.paragraphs:
                logger.warning(
                    "Skipping section %r of book %s: no paragraphs",
                    section.heading,
                    book.id,
                )
                skipped += 1
                continue

            for paragraph_index, text in enumerate(section.paragraphs):
                if not text or not text.strip():
                    logger.warning(
                        "Skipping blank paragraph %d in section %r of book %s",
                        paragraph_index,
                        section.heading,
                        book.id,
                    )
                    skipped += 1
                    continue

                tokens = normalize(text)
                counts = Counter(tokens)
                paragraph_id = len(paragraphs)
                paragraphs.append(
                    IndexedParagraph(
                        ref=ParagraphRef(
                            book_id=book.id,
                            book_order=book_order,
                            section_index=section_index,
                            paragraph_index=paragraph_index,
                        ),
                        book_title=book.title,
                        section_heading=section.heading,
                        text=text.strip(),
                        length=len(tokens),
                        terms=frozenset(counts),
                    )
                )
                for term, frequency in counts.items():
                    occurrences.setdefault(term, []).append(Posting(paragraph_id, frequency))

    postings = {term: tuple(entries) for term, entries in occurrences.items()}
    logger.info(
        "Index built: %d books, %d paragraphs, %d terms, %d entries skipped",
        len(book_ids),
        len(paragraphs),
        len(postings),
        skipped,
    )
    return Index(paragraphs=paragraphs, postings=postings, book_ids=book_ids, skipped=skipped)


def _check_book(book: Book) -> None:
    """Reject books that carry no usable text at all."""
    if not book.sections:
        raise CorpusMalformed(f"book {book.id} has no sections")
    if not any(p.strip() for section in book.sections for p in section.paragraphs):
        raise CorpusMalformed(f"book {book.id} has no paragraph text")


class IndexHolder:
    """Process-wide holder for the current Index.

    The index is built lazily on first access (or eagerly via
    ``reload``). Reloading builds a complete new Index before swapping
    the reference, so readers always see one consistent snapshot.
    """

    def __init__(self, loader: Callable[[], Iterable[Book]]) -> None:
        self._loader = loader
        self._index: Index | None = None
        self._lock = threading.Lock()

    def get(self) -> Index:
        index = self._index
        if index is not None:
            return index
        with self._lock:
            if self._index is None:
                self._index = build_index(self._loader())
            return self._index

    def reload(self, books: Iterable[Book] | None = None) -> Index:
        """Rebuild from the loader (or the given books) and swap atomically."""
        fresh = build_index(self._loader() if books is None else books)
        with self._lock:
            self._index = fresh
        return fresh

    @property
    def is_built(self) -> bool:
        return self._index is not None
