"""Text normalization utilities for band and song names.

Two concerns live here:

1. **Comparison normalization** -- lowercases, strips quotes and
   punctuation, turns dashes into spaces, and drops a leading article
   ("The Beatles" -> "beatles") and a trailing ensemble suffix
   ("Fennel Collective" -> "fennel") so that cosmetic differences never
   hide a match.  ``compact_letters`` goes further and keeps letters only,
   for spelling-insensitive lookups such as the easter egg.

2. **Keys** -- the result-cache key (``lowercase(name):type``).
"""

import re


_LEADING_ARTICLES = ("the", "a", "an")
_TRAILING_SUFFIXES = ("band", "orchestra", "ensemble", "collective", "project")

_QUOTES_RE = re.compile(r"[\"'`‘’“”]")
_DASHES_RE = re.compile(r"[-‐-―_/]+")
_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Normalize a band/song name for similarity comparison.

    Args:
        name: Raw name string.

    Returns:
        Lowercase, punctuation-free name with article/suffix removed.
        Single-word names keep their only word even if it is an article
        or a suffix ("The" stays "the").
    """
    normalized = name.lower().strip()
    normalized = _QUOTES_RE.sub("", normalized)
    normalized = normalized.replace("&", " and ")
    normalized = _DASHES_RE.sub(" ", normalized)
    normalized = _PUNCT_RE.sub("", normalized)
    normalized = _SPACE_RE.sub(" ", normalized).strip()

    words = normalized.split(" ") if normalized else []
    if len(words) > 1 and words[0] in _LEADING_ARTICLES:
        words = words[1:]
    if len(words) > 1 and words[-1] in _TRAILING_SUFFIXES:
        words = words[:-1]

    return " ".join(words)


def compact_letters(name: str) -> str:
    """Lowercase *name* and drop everything that is not a letter.

    ``"Name-Jam!"`` and ``"n a m e j a m"`` both become ``"namejam"``.
    """
    return re.sub(r"[^a-z]", "", name.lower())


def cache_key(name: str, name_type: str) -> str:
    """Build the result-cache key: ``lowercase(trimmed name):type``."""
    return f"{name.strip().lower()}:{name_type}"
