"""Turn ranked candidates into a grounded answer."""

from collections.abc import Sequence

from libraryqa.models.query_result import Answer, AnswerCandidate

DEFAULT_MIN_SCORE = 0.05
DEFAULT_EXCERPT_CHARS = 160
ELLIPSIS = "..."

FALLBACK_ANSWER = (
    "I could not find a precise passage in the library. Try refining your "
    "question with more context, such as a topic or chapter."
)


def filter_candidates(
    candidates: Sequence[AnswerCandidate], min_score: float = DEFAULT_MIN_SCORE
) -> list[AnswerCandidate]:
    """Keep candidates scoring at least ``min_score``, preserving rank order.

    Lowering ``min_score`` only ever adds candidates.
    """
    return [candidate for candidate in candidates if candidate.score >= min_score]


def truncate_excerpt(text: str, max_chars: int = DEFAULT_EXCERPT_CHARS) -> str:
    """Shorten text to at most ``max_chars`` on a word boundary.

    A trailing ellipsis marks truncation. A first word longer than the
    limit is kept whole rather than cut.
    """
    text = " ".join(text.split())
    if len(text) <= max_chars:
        return text

    words = text.split(" ")
    kept: list[str] = []
    length = 0
    for word in words:
        extra = len(word) + (1 if kept else 0)
        if kept and length + extra + len(ELLIPSIS) > max_chars:
            break
        kept.append(word)
        length += extra
        if length + len(ELLIPSIS) >= max_chars:
            break

    return " ".join(kept).rstrip(",;:") + ELLIPSIS


def compose(
    top: AnswerCandidate | None,
    supporting: Sequence[str] | None = None,
    min_score: float = DEFAULT_MIN_SCORE,
    excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
) -> Answer | None:
    """Build an Answer from the best candidate.

    Args:
        top: Highest ranked candidate, or None when retrieval found nothing.
        supporting: Supporting excerpt texts; defaults to those attached
            to ``top``.
        min_score: Minimum relevance for an answer to be given at all.
        excerpt_chars: Maximum length of each supporting excerpt.

    Returns:
        The Answer, or None if no candidate clears ``min_score``.
    """
    if top is None or not filter_candidates([top], min_score):
        return None

    excerpts = top.supporting if supporting is None else supporting
    return Answer(
        text=top.text,
        book_id=top.ref.book_id,
        book_title=top.book_title,
        section=top.section_heading,
        score=top.score,
        supporting=[truncate_excerpt(excerpt, excerpt_chars) for excerpt in excerpts],
    )


def format_base_answer(answer: Answer | None) -> str:
    """Render the English response text for an answer (or the fallback)."""
    if answer is None:
        return FALLBACK_ANSWER

    parts = [answer.text, f"Source: {answer.book_title}, {answer.section}"]
    if answer.supporting:
        parts.append(f"Related context: {' / '.join(answer.supporting)}")
    return "\n\n".join(parts)
