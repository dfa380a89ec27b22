"""Heuristic language detection for inbound questions.

Non-Latin scripts are classified by character ranges. Latin-script text
is scored by overlap with small per-language profiles of function
words. The detector answers None instead of guessing when the evidence
is thin or ambiguous.
"""

import logging
import re

logger = logging.getLogger(__name__)

# Languages identified by script alone.
SCRIPT_PATTERNS: dict[str, re.Pattern[str]] = {
    "he": re.compile(r"[\u0590-\u05FF]"),
    "ar": re.compile(r"[\u0600-\u06FF\u0750-\u077F]"),
    "ru": re.compile(r"[\u0400-\u04FF]"),
}

_LATIN = re.compile(r"[a-zA-Z\u00C0-\u024F]")
_WORD = re.compile(r"[^\W\d_]+")

LANGUAGE_PROFILES: dict[str, frozenset[str]] = {
    "en": frozenset(
        "the a an and or of to in on at for with is are was were be do does did "
        "how what why when where who which can could should would this that "
        "it i you my your about from by not have has".split()
    ),
    "es": frozenset(
        "el la los las un una unos y o de del en con por para es son está están "
        "cómo qué por qué cuándo dónde quién cuál se su sus no lo le al como "
        "pero más muy mi tu".split()
    ),
    "fr": frozenset(
        "le la les un une des et ou de du en avec pour par est sont comment "
        "quoi pourquoi quand où qui quel quelle que ce cette il elle je vous "
        "nous ne pas au aux sur dans".split()
    ),
    "de": frozenset(
        "der die das ein eine einen und oder von zu mit für ist sind wie was "
        "warum wann wo wer welche ich du sie es nicht den dem des im auf auch "
        "funktioniert".split()
    ),
    "it": frozenset(
        "il lo la i gli le un una e o di del della in con per è sono come "
        "cosa perché quando dove chi quale che non si al nel mi ti".split()
    ),
    "pt": frozenset(
        "o a os as um uma e ou de do da dos das em no na com por para é são "
        "como que porque quando onde quem qual não se ao mais".split()
    ),
    "nl": frozenset(
        "de het een en of van naar met voor is zijn hoe wat waarom wanneer "
        "waar wie welke ik je jij niet dat dit op in werkt".split()
    ),
}

# Characters that occur in one profiled language and rarely in the others.
MARKER_CHARACTERS: dict[str, str] = {
    "es": "ñ¿¡",
    "de": "ßäöü",
    "pt": "ãõ",
    "fr": "êœ",
}

MIN_SCRIPT_RATIO = 0.5
MIN_PROFILE_HITS = 2
MIN_HIT_RATIO = 0.2
MIN_MARGIN = 1


def detect(text: str) -> str | None:
    """Estimate the language of a message.

    Args:
        text: Inbound message text.

    Returns:
        A language code such as "en" or "he", or None when the language
        cannot be established with confidence.
    """
    if not text or not text.strip():
        return None

    letters = _LATIN.findall(text)
    script_counts = {code: len(pattern.findall(text)) for code, pattern in SCRIPT_PATTERNS.items()}
    total = len(letters) + sum(script_counts.values())
    if total == 0:
        return None

    best_script = max(script_counts, key=lambda code: script_counts[code])
    if script_counts[best_script] / total > MIN_SCRIPT_RATIO:
        return best_script
    if len(letters) / total <= MIN_SCRIPT_RATIO:
        return None

    return _detect_latin(text)


def _detect_latin(text: str) -> str | None:
    folded = text.casefold()
    words = _WORD.findall(folded)
    if not words:
        return None

    scores: dict[str, int] = {}
    for code, profile in LANGUAGE_PROFILES.items():
        hits = sum(1 for word in words if word in profile)
        hits += sum(1 for char in MARKER_CHARACTERS.get(code, "") if char in folded)
        scores[code] = hits

    ranking = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    (best, best_hits), (_, runner_up_hits) = ranking[0], ranking[1]

    if best_hits < MIN_PROFILE_HITS:
        logger.debug("Language undetermined: too few profile hits (%d)", best_hits)
        return None
    if best_hits / len(words) < MIN_HIT_RATIO:
        logger.debug("Language undetermined: hit ratio %.2f too low", best_hits / len(words))
        return None
    if best_hits - runner_up_hits < MIN_MARGIN:
        logger.debug("Language undetermined: %s ties with runner-up", best)
        return None
    return best


def looks_english(text: str) -> bool:
    """Cheap check that text could be English: plain ASCII letters only."""
    letters = [char for char in text if char.isalpha()]
    return bool(letters) and all(char.isascii() for char in letters)
