"""Translation boundary between user languages and English.

Backends are synchronous; ``Translator`` runs them in worker threads
under a per-call timeout so a slow backend never stalls other queries.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from pathlib import Path

import requests
import yaml

from libraryqa.config import AppConfig
from libraryqa.errors import TranslationUnavailable
from libraryqa.language.detector import detect, looks_english
from libraryqa.models.query_result import TranslationResult
from libraryqa.storage.database import TranslationCache

logger = logging.getLogger(__name__)

ENGLISH = "en"

_BLOCK_SPLIT = re.compile(r"\n\s*\n")
_LABEL = re.compile(r"^([^:\n]{1,40}:)\s*(.*)$", re.DOTALL)


def _phrase_key(text: str) -> str:
    return " ".join(text.split()).casefold()


class TranslationBackend(ABC):
    """A synchronous text translation service."""

    name: str = "backend"

    @abstractmethod
    def translate(self, text: str, source: str | None, target: str) -> str:
        """Translate ``text`` from ``source`` (None = auto) into ``target``.

        Raises:
            TranslationUnavailable: If the text cannot be translated.
        """


class NullBackend(TranslationBackend):
    """Backend used when translation is disabled."""

    name = "none"

    def translate(self, text: str, source: str | None, target: str) -> str:
        raise TranslationUnavailable("translation is disabled")


class DictionaryBackend(TranslationBackend):
    """Offline phrasebook translation.

    The phrasebook maps, per language, English phrases to their
    localized form. Text is translated block by block (blocks are
    separated by blank lines), matching whole blocks case-insensitively.
    A block of the form ``Label: rest`` has its label and its rest
    translated separately; for labels in ``verbatim_labels`` (the source
    line, whose rest is a title and heading) an unknown rest is kept as
    is. Any other unknown block fails the call.
    """

    name = "dictionary"
    verbatim_labels: frozenset[str] = frozenset({"source:"})

    def __init__(self, phrasebook: dict[str, dict[str, str]]) -> None:
        self._to_local: dict[str, dict[str, str]] = {}
        self._to_english: dict[str, dict[str, str]] = {}
        for language, entries in phrasebook.items():
            language = language.lower()
            self._to_local[language] = {_phrase_key(en): local for en, local in entries.items()}
            self._to_english[language] = {_phrase_key(local): en for en, local in entries.items()}

    @classmethod
    def from_file(cls, path: str | Path) -> "DictionaryBackend":
        """Load a YAML phrasebook; a missing file yields an empty phrasebook."""
        phrasebook_file = Path(path)
        if not phrasebook_file.exists():
            logger.warning("Phrasebook not found: %s", phrasebook_file)
            return cls({})
        with open(phrasebook_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        phrasebook = {
            str(language): {str(en): str(local) for en, local in (entries or {}).items()}
            for language, entries in data.items()
        }
        return cls(phrasebook)

    @property
    def languages(self) -> list[str]:
        return sorted(self._to_local)

    def translate(self, text: str, source: str | None, target: str) -> str:
        tables = self._tables(source, target)
        blocks = _BLOCK_SPLIT.split(text.strip())
        return "\n\n".join(self._translate_block(block, tables) for block in blocks)

    def _tables(self, source: str | None, target: str) -> list[dict[str, str]]:
        if target == ENGLISH:
            if source is None:
                return list(self._to_english.values())
            if source in self._to_english:
                return [self._to_english[source]]
        elif source in (ENGLISH, None) and target in self._to_local:
            return [self._to_local[target]]
        raise TranslationUnavailable(f"phrasebook has no {source or 'auto'} -> {target} entries")

    def _translate_block(self, block: str, tables: Iterable[dict[str, str]]) -> str:
        tables = list(tables)
        found = self._lookup(block, tables)
        if found is not None:
            return found

        match = _LABEL.match(block.strip())
        if match:
            label = self._lookup(match.group(1), tables)
            rest = match.group(2)
            if label is not None:
                translated_rest = self._lookup(rest, tables)
                if translated_rest is None and self._is_verbatim_label(match.group(1), label):
                    translated_rest = rest
                if translated_rest is not None:
                    return f"{label} {translated_rest}"

        raise TranslationUnavailable(f"no phrasebook entry for: {block[:60]!r}")

    def _is_verbatim_label(self, *labels: str) -> bool:
        return any(_phrase_key(label) in self.verbatim_labels for label in labels)

    @staticmethod
    def _lookup(phrase: str, tables: Iterable[dict[str, str]]) -> str | None:
        key = _phrase_key(phrase)
        for table in tables:
            if key in table:
                return table[key]
        return None


class LibreTranslateBackend(TranslationBackend):
    """Client for a LibreTranslate-compatible HTTP service."""

    name = "libretranslate"

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + "/translate"
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    def translate(self, text: str, source: str | None, target: str) -> str:
        payload = {"q": text, "source": source or "auto", "target": target, "format": "text"}
        if self._api_key:
            payload["api_key"] = self._api_key

        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
            response.raise_for_status()
            translated = response.json()["translatedText"]
        except requests.RequestException as exc:
            raise TranslationUnavailable(f"translation service error: {exc}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise TranslationUnavailable("malformed translation service response") from exc

        if not isinstance(translated, str):
            raise TranslationUnavailable("malformed translation service response")
        return translated


class Translator:
    """Detects the inbound language and translates to and from English.

    Args:
        backend: The translation backend.
        supported_languages: Language codes the service accepts.
        timeout: Seconds allowed per backend call.
        cache: Optional persistent cache of successful translations.
        detector: Language detection function.
    """

    def __init__(
        self,
        backend: TranslationBackend,
        supported_languages: Iterable[str] = (ENGLISH,),
        timeout: float = 5.0,
        cache: TranslationCache | None = None,
        detector: Callable[[str], str | None] = detect,
    ) -> None:
        self._backend = backend
        self._supported = {code.lower() for code in supported_languages} | {ENGLISH}
        self._timeout = timeout
        self._cache = cache
        self._detector = detector

    def supports(self, language: str) -> bool:
        return language.lower() in self._supported

    def detect(self, text: str) -> str | None:
        """Detected language of ``text``, or None when uncertain."""
        return self._detector(text)

    async def to_english(self, text: str) -> TranslationResult:
        """Translate an inbound message into English.

        English text, and undetected text that looks English, pass
        through unchanged while still reporting the detected language.

        Raises:
            TranslationUnavailable: If translation fails or times out.
        """
        detected = self.detect(text)
        if detected == ENGLISH or (detected is None and looks_english(text)):
            return TranslationResult(text=text, detected_language=detected, target_language=ENGLISH)

        if detected is not None and not self.supports(detected):
            raise TranslationUnavailable(f"unsupported source language: {detected}")

        translated = await self._translate(text, detected, ENGLISH)
        return TranslationResult(
            text=translated,
            detected_language=detected,
            target_language=ENGLISH,
            translated=True,
        )

    async def from_english(self, text: str, target_language: str) -> str:
        """Translate English text into ``target_language``; "en" is a no-op.

        Raises:
            TranslationUnavailable: If the language is unsupported, or the
                translation fails or times out.
        """
        target = target_language.lower()
        if target == ENGLISH:
            return text
        if not self.supports(target):
            raise TranslationUnavailable(f"unsupported target language: {target_language}")
        return await self._translate(text, ENGLISH, target)

    async def _translate(self, text: str, source: str | None, target: str) -> str:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._translate_sync, text, source, target),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Translation %s -> %s timed out after %.1fs", source or "auto", target, self._timeout
            )
            raise TranslationUnavailable("translation timed out") from exc
        except TranslationUnavailable:
            raise
        except Exception as exc:
            logger.warning(
                "Translation %s -> %s failed in %s backend: %s",
                source or "auto",
                target,
                self._backend.name,
                exc,
            )
            raise TranslationUnavailable(f"translation backend error: {exc}") from exc

    def _translate_sync(self, text: str, source: str | None, target: str) -> str:
        if self._cache is not None:
            cached = self._cache.get(text, source, target)
            if cached is not None:
                return cached

        translated = self._backend.translate(text, source, target)

        if self._cache is not None:
            self._cache.put(text, source, target, translated)
        return translated


def build_translator(config: AppConfig) -> Translator:
    """Create the Translator described by the configuration."""
    settings = config.translation
    backend: TranslationBackend
    if settings.backend == "dictionary":
        backend = DictionaryBackend.from_file(settings.dictionary_path)
    elif settings.backend == "libretranslate":
        backend = LibreTranslateBackend(
            settings.libretranslate_url,
            api_key=config.libretranslate_api_key,
            timeout=settings.timeout_seconds,
        )
    elif settings.backend == "none":
        backend = NullBackend()
    else:
        raise ValueError(f"Unknown translation backend: {settings.backend!r}")

    cache = TranslationCache(settings.cache_path) if settings.cache_path else None
    logger.info("Translator ready: backend=%s cache=%s", backend.name, bool(cache))
    return Translator(
        backend,
        supported_languages=settings.supported_languages,
        timeout=settings.timeout_seconds,
        cache=cache,
    )
