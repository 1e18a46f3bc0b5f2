"""
String normalisation and similarity helpers used by local search.
"""

import re
from rapidfuzz.distance import Levenshtein

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_term(text):
    """Lowercase and trim."""
    return (text or "").lower().strip()


def normalize_punctuation(text):
    """
    Lowercase, strip punctuation and collapse whitespace.

    "Spider-Man: Far From Home" -> "spiderman far from home"
    """
    stripped = _NON_WORD.sub("", normalize_term(text))
    return _WHITESPACE.sub(" ", stripped).strip()


def split_words(text, min_length=1):
    """
    Split text into lowercase words, treating punctuation as a separator.

    "Spider-Man: Far From Home" -> ["spider", "man", "far", "from", "home"]
    """
    spaced = _NON_WORD.sub(" ", normalize_term(text))
    return [word for word in spaced.split() if len(word) >= min_length]


def string_similarity(first, second):
    """
    Levenshtein similarity in [0, 1]: 1 - distance / length of the longer string.

    Two empty strings are identical.
    """
    first = (first or "").lower()
    second = (second or "").lower()
    if not first and not second:
        return 1.0
    return Levenshtein.normalized_similarity(first, second)
