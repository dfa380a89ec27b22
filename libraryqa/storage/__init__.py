"""Persistence helpers."""

from libraryqa.storage.database import TranslationCache, initialize_database

__all__ = ["TranslationCache", "initialize_database"]
