"""Question answering pipeline: translate, retrieve, compose, translate back."""

import asyncio
import logging
from typing import Any

from libraryqa.config import AppConfig, RetrievalConfig
from libraryqa.corpus.loader import load_catalog
from libraryqa.errors import InvalidScope, TranslationUnavailable
from libraryqa.language.translator import Translator, build_translator
from libraryqa.models.query_result import (
    Answer,
    QueryRequest,
    QueryResponse,
    Scope,
    SourceRef,
)
from libraryqa.retrieval.composer import compose, format_base_answer
from libraryqa.retrieval.engine import search
from libraryqa.retrieval.index import Index, IndexHolder
from libraryqa.retrieval.tokenizer import normalize

logger = logging.getLogger(__name__)

UNKNOWN_LANGUAGE = "unknown"


def build_request(payload: dict[str, Any]) -> QueryRequest:
    """Validate a loosely typed request body.

    Accepts both ``bookId``/``targetLanguage`` and their snake_case names.

    Raises:
        pydantic.ValidationError: If the message is empty or a field has
            the wrong shape.
    """
    return QueryRequest.model_validate(payload)


class QueryOrchestrator:
    """Answers questions against the shared index.

    Holds no per-query state; concurrent ``answer`` calls are independent.

    Args:
        index_holder: Holder of the current index.
        translator: Translation boundary.
        retrieval: Scoring and composition settings.
    """

    def __init__(
        self,
        index_holder: IndexHolder,
        translator: Translator,
        retrieval: RetrievalConfig | None = None,
    ) -> None:
        self._index_holder = index_holder
        self._translator = translator
        self._retrieval = retrieval or RetrievalConfig()

    def warm_up(self) -> None:
        """Build the index now instead of on the first question."""
        self._index_holder.get()

    async def answer(self, request: QueryRequest) -> QueryResponse:
        """Answer one question.

        Translation failures degrade to English; a missing book id in
        book scope is the only error raised.

        Raises:
            InvalidScope: If scope is "book" and no book id is given.
        """
        if request.scope == "book" and not request.book_id:
            raise InvalidScope("scope 'book' requires a book id")

        question, detected = await self._question_in_english(request.message)

        index = await self._current_index()
        answer = self.retrieve(question, request.scope, request.book_id, index=index)
        base_answer = format_base_answer(answer)

        localized = base_answer
        try:
            localized = await self._translator.from_english(base_answer, request.target_language)
        except TranslationUnavailable as exc:
            logger.warning(
                "Answer not localized to %s, returning English: %s", request.target_language, exc
            )

        return QueryResponse(
            answer=localized,
            base_answer=base_answer,
            target_language=request.target_language,
            detected_language=detected or UNKNOWN_LANGUAGE,
            found=answer is not None,
            source=_source_ref(answer),
        )

    def retrieve(
        self,
        question: str,
        scope: Scope,
        book_id: str | None,
        index: Index | None = None,
    ) -> Answer | None:
        """Search the index for an English question and compose the answer."""
        settings = self._retrieval
        if index is None:
            index = self._index_holder.get()
        candidates = search(
            index,
            normalize(question),
            scope=scope,
            book_id=book_id,
            limit=settings.top_k,
            max_supporting=settings.max_supporting,
        )
        if not candidates:
            logger.info("No candidates for question: %r", question)
            return None

        return compose(
            candidates[0],
            min_score=settings.min_score,
            excerpt_chars=settings.excerpt_chars,
        )

    async def _current_index(self) -> Index:
        if self._index_holder.is_built:
            return self._index_holder.get()
        # First build reads the catalog from disk; keep it off the event loop.
        return await asyncio.to_thread(self._index_holder.get)

    async def _question_in_english(self, message: str) -> tuple[str, str | None]:
        try:
            result = await self._translator.to_english(message)
        except TranslationUnavailable as exc:
            logger.warning("Question not translated, searching untranslated text: %s", exc)
            return message, self._translator.detect(message)
        return result.text or message, result.detected_language


def _source_ref(answer: Answer | None) -> SourceRef | None:
    if answer is None:
        return None
    return SourceRef(id=answer.book_id, title=answer.book_title, section=answer.section)


def build_orchestrator(config: AppConfig) -> QueryOrchestrator:
    """Wire catalog, index and translator from configuration.

    The catalog is read lazily, when the index is first needed.
    """
    catalog_path = config.corpus.catalog_path
    holder = IndexHolder(lambda: load_catalog(catalog_path))
    return QueryOrchestrator(holder, build_translator(config), config.retrieval)
