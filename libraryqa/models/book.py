"""Book data models."""

from pydantic import BaseModel, ConfigDict, Field


class Section(BaseModel):
    """A headed section of a book.

    Paragraph order reflects the document structure and is preserved
    everywhere a section is rendered or indexed.
    """

    model_config = ConfigDict(frozen=True)

    heading: str
    paragraphs: tuple[str, ...] = ()


class Book(BaseModel):
    """An immutable book record supplied by the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    slug: str = ""
    title: str
    author: str = ""
    year: int | None = None
    language: str = "en"
    tags: tuple[str, ...] = ()
    description: str = ""
    keywords: tuple[str, ...] = ()
    sections: tuple[Section, ...] = ()

    def summary(self) -> "BookSummary":
        """Return the listing view of this book (no sections or keywords)."""
        return BookSummary(
            id=self.id,
            slug=self.slug,
            title=self.title,
            author=self.author,
            year=self.year,
            language=self.language,
            tags=list(self.tags),
            description=self.description,
            section_count=len(self.sections),
        )

    def detail(self) -> "BookDetail":
        """Return the reading view of this book: everything but keywords."""
        return BookDetail(**self.model_dump(exclude={"keywords"}))


class BookSummary(BaseModel):
    """Catalog listing entry for a book."""

    id: str
    slug: str = ""
    title: str
    author: str = ""
    year: int | None = None
    language: str = "en"
    tags: list[str] = Field(default_factory=list)
    description: str = ""
    section_count: int = 0


class BookDetail(BaseModel):
    """A single book with its sections, as shown to readers."""

    id: str
    slug: str = ""
    title: str
    author: str = ""
    year: int | None = None
    language: str = "en"
    tags: list[str] = Field(default_factory=list)
    description: str = ""
    sections: list[Section] = Field(default_factory=list)
