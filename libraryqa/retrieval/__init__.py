"""Lexical retrieval: tokenization, indexing, scoring and answer composition."""

from libraryqa.retrieval.composer import (
    FALLBACK_ANSWER,
    compose,
    filter_candidates,
    format_base_answer,
    truncate_excerpt,
)
from libraryqa.retrieval.engine import inverse_document_frequency, search
from libraryqa.retrieval.index import Index, IndexHolder, build_index
from libraryqa.retrieval.tokenizer import STOP_WORDS, normalize

__all__ = [
    "FALLBACK_ANSWER",
    "Index",
    "IndexHolder",
    "STOP_WORDS",
    "build_index",
    "compose",
    "filter_candidates",
    "format_base_answer",
    "inverse_document_frequency",
    "normalize",
    "search",
    "truncate_excerpt",
]
