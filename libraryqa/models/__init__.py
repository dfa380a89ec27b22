"""Data models for the Library Q&A engine."""

from libraryqa.models.book import Book, BookDetail, BookSummary, Section
from libraryqa.models.query_result import (
    Answer,
    AnswerCandidate,
    ParagraphRef,
    QueryRequest,
    QueryResponse,
    Scope,
    SourceRef,
    TranslationResult,
)

__all__ = [
    "Answer",
    "AnswerCandidate",
    "Book",
    "BookDetail",
    "BookSummary",
    "ParagraphRef",
    "QueryRequest",
    "QueryResponse",
    "Scope",
    "Section",
    "SourceRef",
    "TranslationResult",
]
