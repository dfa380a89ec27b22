"""Tests for the translation boundary."""

import asyncio
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
import yaml

from libraryqa.config import AppConfig
from libraryqa.errors import TranslationUnavailable
from libraryqa.language.translator import (
    DictionaryBackend,
    LibreTranslateBackend,
    NullBackend,
    TranslationBackend,
    Translator,
    build_translator,
)
from libraryqa.storage.database import TranslationCache

PHRASEBOOK = {
    "es": {
        "How do carbon markets work?": "¿Cómo funcionan los mercados de carbono?",
        "Carbon markets price emissions.": "Los mercados de carbono ponen precio a las emisiones.",
        "Source:": "Fuente:",
        "Related context:": "Contexto relacionado:",
    },
}


class RecordingBackend(TranslationBackend):
    name = "recording"

    def __init__(self, result: str = "translated") -> None:
        self.calls: list[tuple[str, str | None, str]] = []
        self.result = result

    def translate(self, text: str, source: str | None, target: str) -> str:
        self.calls.append((text, source, target))
        return self.result


class SlowBackend(TranslationBackend):
    def translate(self, text: str, source: str | None, target: str) -> str:
        time.sleep(0.5)
        return "too late"


class BrokenBackend(TranslationBackend):
    name = "broken"

    def translate(self, text: str, source: str | None, target: str) -> str:
        raise ConnectionError("backend down")


@pytest.fixture
def dictionary() -> DictionaryBackend:
    return DictionaryBackend(PHRASEBOOK)


class TestDictionaryBackend:
    def test_to_target_language(self, dictionary: DictionaryBackend) -> None:
        result = dictionary.translate("Carbon markets price emissions.", "en", "es")
        assert result == "Los mercados de carbono ponen precio a las emisiones."

    def test_to_english(self, dictionary: DictionaryBackend) -> None:
        result = dictionary.translate("¿Cómo funcionan los mercados de carbono?", "es", "en")
        assert result == "How do carbon markets work?"

    def test_auto_source_to_english(self, dictionary: DictionaryBackend) -> None:
        result = dictionary.translate("¿cómo funcionan  los mercados de carbono?", None, "en")
        assert result == "How do carbon markets work?"

    def test_blocks_and_labels(self, dictionary: DictionaryBackend) -> None:
        text = "Carbon markets price emissions.\n\nSource: Climate Atlas, Carbon Markets"
        result = dictionary.translate(text, "en", "es")
        assert result == (
            "Los mercados de carbono ponen precio a las emisiones.\n\n"
            "Fuente: Climate Atlas, Carbon Markets"
        )

    def test_unknown_block_fails(self, dictionary: DictionaryBackend) -> None:
        with pytest.raises(TranslationUnavailable):
            dictionary.translate("Offsets fund reductions.", "en", "es")

    def test_source_label_to_english(self, dictionary: DictionaryBackend) -> None:
        result = dictionary.translate("Fuente: Climate Atlas, Carbon Markets", "es", "en")
        assert result == "Source: Climate Atlas, Carbon Markets"

    def test_related_context_requires_known_excerpts(self, dictionary: DictionaryBackend) -> None:
        text = "Carbon markets price emissions.\n\nRelated context: Offsets fund reductions."
        with pytest.raises(TranslationUnavailable):
            dictionary.translate(text, "en", "es")

    def test_related_context_with_known_excerpt(self, dictionary: DictionaryBackend) -> None:
        result = dictionary.translate("Related context: Carbon markets price emissions.", "en", "es")
        assert result == "Contexto relacionado: Los mercados de carbono ponen precio a las emisiones."

    def test_unknown_language_fails(self, dictionary: DictionaryBackend) -> None:
        with pytest.raises(TranslationUnavailable):
            dictionary.translate("Carbon markets price emissions.", "en", "fr")

    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "phrasebook.yaml"
        path.write_text(yaml.dump(PHRASEBOOK, allow_unicode=True), encoding="utf-8")
        backend = DictionaryBackend.from_file(path)
        assert backend.languages == ["es"]
        assert backend.translate("Source:", "en", "es") == "Fuente:"

    def test_from_missing_file(self, tmp_path: Path) -> None:
        backend = DictionaryBackend.from_file(tmp_path / "missing.yaml")
        assert backend.languages == []


class TestLibreTranslateBackend:
    def _backend(self, session: MagicMock) -> LibreTranslateBackend:
        return LibreTranslateBackend("http://mt.local/", api_key="secret", timeout=2.0, session=session)

    def test_posts_payload(self) -> None:
        session = MagicMock()
        session.post.return_value.json.return_value = {"translatedText": "Hola"}
        result = self._backend(session).translate("Hello", None, "es")

        assert result == "Hola"
        session.post.assert_called_once_with(
            "http://mt.local/translate",
            json={"q": "Hello", "source": "auto", "target": "es", "format": "text", "api_key": "secret"},
            timeout=2.0,
        )

    def test_http_error(self) -> None:
        session = MagicMock()
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("503")
        with pytest.raises(TranslationUnavailable):
            self._backend(session).translate("Hello", "en", "es")

    def test_connection_error(self) -> None:
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(TranslationUnavailable):
            self._backend(session).translate("Hello", "en", "es")

    def test_malformed_response(self) -> None:
        session = MagicMock()
        session.post.return_value.json.return_value = {"error": "bad"}
        with pytest.raises(TranslationUnavailable):
            self._backend(session).translate("Hello", "en", "es")


class TestTranslatorToEnglish:
    def test_english_passes_through(self) -> None:
        backend = RecordingBackend()
        translator = Translator(backend, ["en", "es"])
        result = asyncio.run(translator.to_english("How do carbon markets work?"))
        assert result.text == "How do carbon markets work?"
        assert result.detected_language == "en"
        assert result.translated is False
        assert backend.calls == []

    def test_unknown_but_english_looking_passes_through(self) -> None:
        backend = RecordingBackend()
        translator = Translator(backend, ["en", "es"])
        result = asyncio.run(translator.to_english("opera singing techniques"))
        assert result.text == "opera singing techniques"
        assert result.detected_language is None
        assert backend.calls == []

    def test_translates_detected_language(self, dictionary: DictionaryBackend) -> None:
        translator = Translator(dictionary, ["en", "es"])
        result = asyncio.run(translator.to_english("¿Cómo funcionan los mercados de carbono?"))
        assert result.text == "How do carbon markets work?"
        assert result.detected_language == "es"
        assert result.target_language == "en"
        assert result.translated is True

    def test_unsupported_source_language(self) -> None:
        translator = Translator(RecordingBackend(), ["en", "es"])
        with pytest.raises(TranslationUnavailable):
            asyncio.run(translator.to_english("Comment fonctionnent les marchés du carbone ?"))

    def test_undetected_non_english_uses_auto_source(self) -> None:
        backend = RecordingBackend("carbon")
        translator = Translator(backend, ["en"])
        asyncio.run(translator.to_english("carbono"))
        assert backend.calls == []
        asyncio.run(translator.to_english("técnicas"))
        assert backend.calls == [("técnicas", None, "en")]


class TestTranslatorFromEnglish:
    def test_english_target_is_identity(self) -> None:
        backend = RecordingBackend()
        translator = Translator(backend, ["en"])
        for text in ["", "Carbon markets.", "Ünïcode ✓\n\nblocks"]:
            assert asyncio.run(translator.from_english(text, "en")) == text
        assert asyncio.run(translator.from_english("x", "EN")) == "x"
        assert backend.calls == []

    def test_translates(self, dictionary: DictionaryBackend) -> None:
        translator = Translator(dictionary, ["en", "es"])
        result = asyncio.run(translator.from_english("Source:", "es"))
        assert result == "Fuente:"

    def test_unsupported_target(self) -> None:
        translator = Translator(RecordingBackend(), ["en", "es"])
        with pytest.raises(TranslationUnavailable):
            asyncio.run(translator.from_english("Hello", "ja"))

    def test_backend_failure(self) -> None:
        translator = Translator(NullBackend(), ["en", "es"])
        with pytest.raises(TranslationUnavailable):
            asyncio.run(translator.from_english("Hello", "es"))

    def test_timeout_becomes_unavailable(self) -> None:
        translator = Translator(SlowBackend(), ["en", "es"], timeout=0.05)
        with pytest.raises(TranslationUnavailable):
            asyncio.run(translator.from_english("Hello", "es"))

    def test_backend_exception_becomes_unavailable(self) -> None:
        translator = Translator(BrokenBackend(), ["en", "es"])
        with pytest.raises(TranslationUnavailable):
            asyncio.run(translator.from_english("Hello", "es"))
        with pytest.raises(TranslationUnavailable):
            asyncio.run(translator.to_english("¿Cómo funcionan los mercados de carbono?"))

    def test_target_language_case_insensitive(self, dictionary: DictionaryBackend) -> None:
        translator = Translator(dictionary, ["en", "es"])
        assert asyncio.run(translator.from_english("Source:", "ES")) == "Fuente:"


class TestTranslatorCache:
    def test_second_call_hits_cache(self, tmp_path: Path) -> None:
        backend = RecordingBackend("Hola")
        cache = TranslationCache(tmp_path / "cache.db")
        translator = Translator(backend, ["en", "es"], cache=cache)

        assert asyncio.run(translator.from_english("Hello", "es")) == "Hola"
        assert asyncio.run(translator.from_english("Hello", "es")) == "Hola"
        assert len(backend.calls) == 1

    def test_failures_not_cached(self, tmp_path: Path) -> None:
        cache = TranslationCache(tmp_path / "cache.db")
        translator = Translator(NullBackend(), ["en", "es"], cache=cache)
        with pytest.raises(TranslationUnavailable):
            asyncio.run(translator.from_english("Hello", "es"))
        assert cache.get("Hello", "en", "es") is None


class TestBuildTranslator:
    def test_dictionary_backend(self, tmp_path: Path) -> None:
        path = tmp_path / "phrasebook.yaml"
        path.write_text(yaml.dump(PHRASEBOOK, allow_unicode=True), encoding="utf-8")
        config = AppConfig(translation={"backend": "dictionary", "dictionary_path": str(path)})
        translator = build_translator(config)
        assert asyncio.run(translator.from_english("Source:", "es")) == "Fuente:"

    def test_disabled_backend(self) -> None:
        translator = build_translator(AppConfig(translation={"backend": "none"}))
        with pytest.raises(TranslationUnavailable):
            asyncio.run(translator.from_english("Hello", "es"))

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            build_translator(AppConfig(translation={"backend": "carrier-pigeon"}))
