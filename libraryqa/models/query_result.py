"""Query, candidate and answer data models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Scope = Literal["book", "library"]


class ParagraphRef(BaseModel):
    """Location of a paragraph inside the catalog."""

    model_config = ConfigDict(frozen=True)

    book_id: str
    book_order: int
    section_index: int
    paragraph_index: int

    @property
    def sort_key(self) -> tuple[int, int, int]:
        """Document order: book insertion order, then section, then paragraph."""
        return (self.book_order, self.section_index, self.paragraph_index)


class AnswerCandidate(BaseModel):
    """A scored paragraph considered for the answer."""

    ref: ParagraphRef
    book_title: str
    section_heading: str
    text: str
    score: float = Field(ge=0.0)
    supporting: list[str] = Field(default_factory=list)


class Answer(BaseModel):
    """A composed answer grounded in one paragraph."""

    text: str
    book_id: str
    book_title: str
    section: str
    score: float
    supporting: list[str] = Field(default_factory=list)


class TranslationResult(BaseModel):
    """Outcome of a translation step.

    ``detected_language`` is None when the source language could not be
    established with confidence.
    """

    text: str
    detected_language: str | None = None
    target_language: str
    translated: bool = False


class QueryRequest(BaseModel):
    """Validated inbound question."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: str
    scope: Scope = "library"
    book_id: str | None = Field(default=None, alias="bookId")
    target_language: str = Field(default="en", alias="targetLanguage")

    @field_validator("message")
    @classmethod
    def _message_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message must not be empty.")
        return value

    @field_validator("book_id")
    @classmethod
    def _blank_book_id_is_absent(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("target_language")
    @classmethod
    def _language_not_blank(cls, value: str) -> str:
        return value.strip() or "en"


class SourceRef(BaseModel):
    """Reference to the passage an answer came from."""

    id: str
    title: str
    section: str


class QueryResponse(BaseModel):
    """Response returned across the query boundary."""

    model_config = ConfigDict(populate_by_name=True)

    answer: str
    base_answer: str = Field(alias="baseAnswer")
    target_language: str = Field(alias="targetLanguage")
    detected_language: str = Field(alias="detectedLanguage")
    found: bool
    source: SourceRef | None = None
