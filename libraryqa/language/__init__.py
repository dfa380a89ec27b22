"""Language detection and translation."""

from libraryqa.language.detector import detect, looks_english
from libraryqa.language.translator import (
    DictionaryBackend,
    LibreTranslateBackend,
    NullBackend,
    TranslationBackend,
    Translator,
    build_translator,
)

__all__ = [
    "DictionaryBackend",
    "LibreTranslateBackend",
    "NullBackend",
    "TranslationBackend",
    "Translator",
    "build_translator",
    "detect",
    "looks_english",
]
