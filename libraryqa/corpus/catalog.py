"""Read-only view over the loaded books."""

from collections.abc import Iterable, Iterator

from libraryqa.models.book import Book, BookDetail, BookSummary


class Catalog:
    """Books in insertion order, with lookup by id."""

    def __init__(self, books: Iterable[Book]) -> None:
        self._books = tuple(books)
        self._by_id = {book.id: book for book in self._books}

    def __iter__(self) -> Iterator[Book]:
        return iter(self._books)

    def __len__(self) -> int:
        return len(self._books)

    @property
    def books(self) -> tuple[Book, ...]:
        return self._books

    def get_book(self, book_id: str) -> Book | None:
        return self._by_id.get(book_id)

    def book_detail(self, book_id: str) -> BookDetail | None:
        """Reading view of one book, without its keywords."""
        book = self._by_id.get(book_id)
        return book.detail() if book is not None else None

    def summaries(self) -> list[BookSummary]:
        """Listing entries for every book, without sections or keywords."""
        return [book.summary() for book in self._books]

    def tags(self) -> list[str]:
        """All distinct tags, sorted."""
        return sorted({tag for book in self._books for tag in book.tags})
