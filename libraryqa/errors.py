"""Exceptions raised by the Library Q&A core."""


class LibraryQAError(Exception):
    """Base class for all library Q&A errors."""


class InvalidScope(LibraryQAError):
    """A book-scoped query was issued without a book id."""


class TranslationUnavailable(LibraryQAError):
    """Language detection or translation failed, timed out, or is unsupported."""


class CorpusMalformed(LibraryQAError):
    """A book or section carries no usable text."""


class CorpusUnavailable(LibraryQAError):
    """The catalog is missing, unreadable, or empty.

    This is the only fatal error: it is raised at startup and is meant
    for the operator, not the end user.
    """
