"""Quality gate for machine translations.

The upstream APIs have no real Tulu model and silently answer in Kannada
script, echo the input back, or put an error string where the
translation belongs. Anything that is not Roman-script Tulu is rejected.
"""

from __future__ import annotations

import re

from tulubot.core.exceptions import TranslationRejectedError
from tulubot.services.lexicon import normalize

_KANNADA = re.compile(r"[\u0c80-\u0cff]")

# ASCII letters/digits, whitespace, basic punctuation, Latin-1 and Latin Extended-A letters
_ROMAN_TULU = re.compile(r"^[A-Za-z0-9\s.,!?'\"()\-\u00c0-\u00ff\u0100-\u017f]+$")

_SENTINELS = (
    "MYMEMORY WARNING",
    "INVALID LANGUAGE PAIR",
    "INVALID SOURCE LANGUAGE",
    "INVALID TARGET LANGUAGE",
    "QUERY LENGTH LIMIT",
    "NO QUERY SPECIFIED",
    "PLEASE SELECT TWO DISTINCT LANGUAGES",
    "YOU USED ALL AVAILABLE FREE TRANSLATIONS",
)


def contains_kannada(text: str) -> bool:
    return bool(_KANNADA.search(text))


def validate_translation(source_text: str, translation: str | None) -> str:
    """Return the cleaned translation or raise TranslationRejectedError."""
    cleaned = (translation or "").strip()
    if not cleaned:
        raise TranslationRejectedError("empty translation")
    if normalize(cleaned) == normalize(source_text):
        raise TranslationRejectedError("translation echoes the input")
    upper = cleaned.upper()
    for marker in _SENTINELS:
        if marker in upper:
            raise TranslationRejectedError(f"error marker in response: {marker}")
    if contains_kannada(cleaned):
        raise TranslationRejectedError("Kannada script returned instead of Tulu")
    if not _ROMAN_TULU.match(cleaned):
        raise TranslationRejectedError("unexpected script in translation")
    return cleaned


def is_valid_translation(source_text: str, translation: str | None) -> bool:
    try:
        validate_translation(source_text, translation)
    except TranslationRejectedError:
        return False
    return True
