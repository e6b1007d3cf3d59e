#!/usr/bin/env python3
"""
Place Matching Engine — String Similarity

Normalisation and similarity primitives shared by name and address
comparison. Every score is computed on normalised strings, never on raw
provider input.

Dependencies:
    pip install rapidfuzz
"""

from __future__ import annotations

import re

from rapidfuzz.distance import JaroWinkler, Levenshtein


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

# Anything that is not a letter, digit or whitespace
_NON_ALNUM = re.compile(r"[^\w\s]|_")
_MULTI_SPACE = re.compile(r"\s+")

# Jaro-Winkler prefix bonus: up to 4 leading characters, 0.1 each
PREFIX_WEIGHT = 0.1


def normalize(text: str | None) -> str:
    """
    Normalise a string for comparison.

    Steps:
        1. Lowercase
        2. Replace every non-alphanumeric, non-space character with a space
        3. Collapse whitespace and trim

    Examples:
        "Joe's  Café, Ltd." → "joe s café ltd"
        "  #12-B Main St. " → "12 b main st"
    """
    if not text:
        return ""
    text = _NON_ALNUM.sub(" ", text.lower())
    return _MULTI_SPACE.sub(" ", text).strip()


# ---------------------------------------------------------------------------
# Scoring functions
# ---------------------------------------------------------------------------


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit insert/delete/substitute costs."""
    return Levenshtein.distance(a, b)


def edit_similarity(a: str, b: str) -> float:
    """
    Normalised Levenshtein similarity between two strings.

    Returns a value in [0.0, 1.0] where 1.0 means identical. Two empty
    strings are identical.
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / max_len


def prefix_weighted_similarity(a: str, b: str) -> float:
    """
    Jaro-Winkler similarity in [0.0, 1.0].

    Characters match when equal and within a window proportional to the
    longer string; matched characters out of order count as transpositions.
    The resulting Jaro score is boosted by the shared prefix (up to 4
    characters, each closing 10% of the remaining gap to 1.0), but only when
    the Jaro score already exceeds 0.7.

    There is no minimum length: strings of three characters or fewer still
    score on their matched characters, so "ab" vs "ac" gives 2/3 (Jaro only,
    below the boost threshold) rather than 0.0.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return JaroWinkler.similarity(a, b, prefix_weight=PREFIX_WEIGHT)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def name_similarity(name_a: str | None, name_b: str | None) -> float:
    """Prefix-weighted similarity of two normalised place names."""
    return prefix_weighted_similarity(normalize(name_a), normalize(name_b))


def canonical_key(name: str | None, address: str | None) -> str:
    """Exact-duplicate key: normalised name and address joined by '|'."""
    return f"{normalize(name)}|{normalize(address)}"
