"""Street-number / street-name extraction from free-text provider addresses."""

from __future__ import annotations

import re
from typing import NamedTuple

from .string_similarity import normalize


# Roadway types dropped from the tail of a street name, with abbreviations
ROADWAY_SUFFIXES = frozenset({
    "street", "st",
    "avenue", "ave",
    "road", "rd",
    "boulevard", "blvd",
    "drive", "dr",
    "lane", "ln",
    "way",
    "place", "pl",
})

_LEADING_NUMBER = re.compile(r"^(\d+)\s+(.+)$")


class StreetAddress(NamedTuple):
    number: str
    name: str


def _strip_roadway_suffix(street: str) -> str:
    # The first token is never a suffix ("St Andrews Way" keeps "st andrews").
    tokens = street.split()
    for i, token in enumerate(tokens[1:], start=1):
        if token in ROADWAY_SUFFIXES:
            return " ".join(tokens[:i])
    return street


def parse_street(address: str | None) -> StreetAddress:
    """
    Extract a comparable (number, name) pair from a free-text address.

    Only the segment before the first comma is considered. The street name
    is truncated at its roadway type, so "123 Main Street" and "123 Main"
    both yield ("123", "main").

    Without a leading number the whole normalised address becomes the name
    and the number is empty.
    """
    if not address:
        return StreetAddress("", "")

    first_segment = address.split(",", 1)[0]
    normalized = normalize(first_segment)

    m = _LEADING_NUMBER.match(normalized)
    if not m:
        return StreetAddress("", normalize(address))

    return StreetAddress(m.group(1), _strip_roadway_suffix(m.group(2)))
