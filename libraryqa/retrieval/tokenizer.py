"""Text normalization into index tokens."""

import re

# Runs of letters or digits; underscores and punctuation act as separators.
_WORD_PATTERN = re.compile(r"[^\W_]+")
_APOSTROPHES = re.compile(r"['’`]")

STOP_WORDS: frozenset[str] = frozenset(
    {
        # articles and determiners
        "a", "an", "the", "this", "that", "these", "those", "some", "any",
        "each", "every", "no", "all", "both",
        # prepositions and conjunctions
        "about", "above", "after", "against", "along", "among", "around", "at",
        "before", "behind", "below", "between", "by", "during", "for", "from",
        "in", "into", "of", "off", "on", "onto", "out", "over", "through", "to",
        "toward", "towards", "under", "until", "up", "upon", "with", "within",
        "without", "and", "or", "but", "nor", "so", "than", "then", "as", "if",
        "because", "while", "though", "although",
        # auxiliary and modal verbs
        "am", "is", "are", "was", "were", "be", "been", "being", "do", "does",
        "did", "doing", "have", "has", "had", "having", "can", "could", "may",
        "might", "must", "shall", "should", "will", "would",
        # pronouns
        "i", "me", "my", "we", "us", "our", "you", "your", "he", "him", "his",
        "she", "her", "it", "its", "they", "them", "their", "there", "here",
        # question words and fillers
        "what", "which", "who", "whom", "whose", "when", "where", "why", "how",
        "not", "very", "too", "also", "just", "only", "own", "same", "such",
        "more", "most", "other", "s", "t",
    }
)


def tokenize(text: str) -> list[str]:
    """Split text into case-folded word tokens, keeping stop words."""
    if not text:
        return []
    folded = _APOSTROPHES.sub("", text.casefold())
    return _WORD_PATTERN.findall(folded)


def normalize(text: str) -> list[str]:
    """Turn raw text into its ordered sequence of index tokens.

    Case-folds, strips punctuation and drops stop words. Deterministic
    and total: empty or stop-word-only input yields an empty list.

    Args:
        text: Raw paragraph or query text.

    Returns:
        Ordered tokens, duplicates preserved.
    """
    return [token for token in tokenize(text) if token not in STOP_WORDS]
