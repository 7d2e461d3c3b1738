"""
Lightweight language detection for prompt text.

Script ranges are checked first, then common words and diacritics for
Latin-script languages. Anything unmatched is reported as English.
"""

import re
from typing import Optional

DEFAULT_LANGUAGE = "en"

# Shorter prompts are not worth guessing about
MIN_DETECTION_CHARS = 20

_ARABIC_SCRIPT = re.compile(r"[\u0600-\u06FF]")
_ARABIC_LETTERS = re.compile(r"[\u0627\u0644]")

# Checked in order; first match wins
_SCRIPT_RANGES = (
    ("hi", re.compile(r"[\u0900-\u097F]")),
    ("te", re.compile(r"[\u0C00-\u0C7F]")),
    ("ta", re.compile(r"[\u0B80-\u0BFF]")),
    ("zh", re.compile(r"[\u4E00-\u9FFF]")),
    ("ja", re.compile(r"[\u3040-\u309F\u30A0-\u30FF]")),
)

_LATIN_HINTS = (
    (
        "es",
        {"el", "la", "los", "las", "y", "en", "es", "por", "que", "como", "para"},
        re.compile(r"ñ|¿|á|é|í|ó|ú"),
    ),
    (
        "fr",
        {"le", "la", "les", "et", "en", "est", "pour", "que", "comme", "dans"},
        re.compile(r"ç|à|â|ê|è|é|ë|î|ï|ô|œ|ù|û|ü|ÿ"),
    ),
    (
        "de",
        {"der", "die", "das", "und", "ist", "für", "wie", "mit", "auf", "dem"},
        re.compile(r"ä|ö|ü|ß"),
    ),
)


def detect_language(text: str) -> str:
    """Guess the language code of a piece of text.

    Args:
        text: Text to inspect

    Returns:
        Two-letter language code, "en" when nothing more specific matches
    """
    if _ARABIC_SCRIPT.search(text):
        return "ar" if _ARABIC_LETTERS.search(text) else "ur"

    for code, pattern in _SCRIPT_RANGES:
        if pattern.search(text):
            return code

    normalized = text.lower()
    words = set(normalized.split())
    for code, common_words, diacritics in _LATIN_HINTS:
        if words & common_words or diacritics.search(normalized):
            return code

    return DEFAULT_LANGUAGE


def detect_input_language(text: str) -> Optional[str]:
    """Detect the language of a prompt being typed.

    Returns None until the prompt is longer than MIN_DETECTION_CHARS,
    since very short input gives unreliable guesses.
    """
    if len(text.strip()) <= MIN_DETECTION_CHARS:
        return None
    return detect_language(text)
