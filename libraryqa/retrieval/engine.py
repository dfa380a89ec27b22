"""TF-IDF style paragraph ranking with book/library scoping."""

import logging
import math
from collections.abc import Sequence

from libraryqa.errors import InvalidScope
from libraryqa.models.query_result import AnswerCandidate, Scope
from libraryqa.retrieval.index import Index

logger = logging.getLogger(__name__)

DEFAULT_MAX_SUPPORTING = 2


def inverse_document_frequency(index: Index, term: str) -> float:
    """Smoothed IDF over paragraphs: ``log((N + 1) / (df + 1)) + 1``.

    Always positive, so a term present everywhere still counts a little.
    """
    return math.log((index.total_paragraphs + 1) / (index.document_frequency(term) + 1)) + 1.0


def search(
    index: Index,
    query_tokens: Sequence[str],
    scope: Scope = "library",
    book_id: str | None = None,
    limit: int | None = None,
    max_supporting: int = DEFAULT_MAX_SUPPORTING,
) -> list[AnswerCandidate]:
    """Rank paragraphs for a normalized query, best first.

    Each paragraph scores the sum, over distinct query terms it contains,
    of ``tf * idf``, divided by the square root of its token count. Ties
    fall back to document order (book, section, paragraph), so identical
    queries against one index always rank identically.

    The top candidate also carries supporting excerpts: other paragraphs
    of its section sharing at least one query term.

    Args:
        index: The index to search.
        query_tokens: Output of ``normalize`` for the question.
        scope: "book" to restrict to ``book_id``, "library" for all books.
        book_id: Required when scope is "book"; ignored otherwise.
        limit: Maximum number of candidates to return (None for all).
        max_supporting: Maximum supporting excerpts on the top candidate.

    Returns:
        Candidates ordered by descending score. Empty when the query has
        no tokens or nothing matches.

    Raises:
        InvalidScope: If scope is "book" and no book id is given.
    """
    if scope == "book":
        if not book_id:
            raise InvalidScope("scope 'book' requires a book id")
        if not index.has_book(book_id):
            logger.info("Book %s not in index; no candidates", book_id)
            return []
    elif scope != "library":
        raise InvalidScope(f"unknown scope: {scope!r}")

    terms = list(dict.fromkeys(query_tokens))
    if not terms:
        return []

    scores: dict[int, float] = {}
    for term in terms:
        postings = index.postings(term)
        if not postings:
            continue
        idf = inverse_document_frequency(index, term)
        for posting in postings:
            if scope == "book" and index.paragraph(posting.paragraph_id).ref.book_id != book_id:
                continue
            scores[posting.paragraph_id] = scores.get(posting.paragraph_id, 0.0) + posting.frequency * idf

    if not scores:
        return []

    ranked = sorted(
        (
            (raw / math.sqrt(index.paragraph(pid).length), pid)
            for pid, raw in scores.items()
        ),
        key=lambda item: (-item[0], item[1]),
    )
    if limit is not None:
        ranked = ranked[:limit]

    candidates = [_to_candidate(index, pid, score) for score, pid in ranked]
    if not candidates:
        return []
    if max_supporting > 0:
        top_id = ranked[0][1]
        candidates[0].supporting = supporting_excerpts(index, top_id, terms, max_supporting)

    logger.debug(
        "search terms=%s scope=%s book=%s hits=%d top=%.4f",
        terms,
        scope,
        book_id,
        len(scores),
        candidates[0].score,
    )
    return candidates


def supporting_excerpts(
    index: Index,
    paragraph_id: int,
    terms: Sequence[str],
    max_count: int = DEFAULT_MAX_SUPPORTING,
) -> list[str]:
    """Sibling paragraphs of the same section that share a query term.

    Ordered by number of shared terms, then by position in the section.
    """
    wanted = set(terms)
    overlaps: list[tuple[int, int]] = []
    for sibling_id in index.section_paragraph_ids(paragraph_id):
        if sibling_id == paragraph_id:
            continue
        shared = len(wanted & index.paragraph(sibling_id).terms)
        if shared >= 1:
            overlaps.append((shared, sibling_id))

    overlaps.sort(key=lambda item: (-item[0], item[1]))
    return [index.paragraph(pid).text for _, pid in overlaps[:max_count]]


def _to_candidate(index: Index, paragraph_id: int, score: float) -> AnswerCandidate:
    paragraph = index.paragraph(paragraph_id)
    return AnswerCandidate(
        ref=paragraph.ref,
        book_title=paragraph.book_title,
        section_heading=paragraph.section_heading,
        text=paragraph.text,
        score=score,
    )
