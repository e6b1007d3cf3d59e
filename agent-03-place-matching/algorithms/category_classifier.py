#!/usr/bin/env python3
"""
Place Matching Engine — Category Classifier

Maps a place name plus two independent provider taxonomies (Yelp-style
category aliases and Google-style place types) to exactly one CategoryLabel.

Rules are evaluated as a strict priority cascade; the first rule that fires
wins:

    1. Worship terms in the name            → temple / gurdwara / mosque
    2. Religious-organisation provider tag  → relaxed worship terms, else org
    3. Category tiers (first taxonomy, then second taxonomy)
    4. Fallback                             → org

The fallback is never ``restaurant``: an unrecognised record must not be
silently filed as food service.

Keyword lists are configuration. Defaults live in this module; an override
file can be loaded once with CategoryRules.from_yaml().

Dependencies:
    pip install pyyaml
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


class CategoryLabel(str, Enum):
    RESTAURANT = "restaurant"
    CAFE = "cafe"
    GROCER = "grocer"
    FASHION = "fashion"
    BEAUTY = "beauty"
    DANCE = "dance"
    TEMPLE = "temple"
    GURDWARA = "gurdwara"
    MOSQUE = "mosque"
    ORG = "org"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_worship(self) -> bool:
        return self in WORSHIP_LABELS

    @classmethod
    def parse(cls, value: "str | CategoryLabel") -> "CategoryLabel":
        """Accept a label value ("temple") or display name ("Temple")."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for label in cls:
            if key in (label.value, label.display_name.lower()):
                return label
        raise ValueError(f"Unknown category label: {value!r}")


_DISPLAY_NAMES = {
    CategoryLabel.RESTAURANT: "Restaurant",
    CategoryLabel.CAFE: "Cafe/Dessert",
    CategoryLabel.GROCER: "Grocery Store",
    CategoryLabel.FASHION: "Clothing Store",
    CategoryLabel.BEAUTY: "Beauty Salon",
    CategoryLabel.DANCE: "Dance/Cultural",
    CategoryLabel.TEMPLE: "Temple",
    CategoryLabel.GURDWARA: "Gurdwara",
    CategoryLabel.MOSQUE: "Mosque",
    CategoryLabel.ORG: "Community Organization",
}

WORSHIP_LABELS = frozenset({
    CategoryLabel.TEMPLE,
    CategoryLabel.GURDWARA,
    CategoryLabel.MOSQUE,
})

FALLBACK_LABEL = CategoryLabel.ORG


# ---------------------------------------------------------------------------
# Default keyword lists
# ---------------------------------------------------------------------------

# Regex fragments, matched case-insensitively as whole words. Order matters:
# the first label whose terms match wins, so "Guru Nanak Sikh Temple" is a
# temple.
_DEFAULT_WORSHIP_TERMS: dict[str, list[str]] = {
    "temple": ["mandir", "temple", "iskcon", "shiv", "krishna", "sai", "hindu"],
    "gurdwara": ["gurdwara", "gurudwara", "sikh"],
    "mosque": ["mosque", "masjid", r"islamic\s+cent(?:re|er)", "jamia"],
}

# Applied only when a provider already tagged the place as religious.
_DEFAULT_RELIGIOUS_ORG_TERMS: dict[str, list[str]] = {
    "temple": ["mandir", "temple", "iskcon", "shiv", "krishna", "sai", "hindu", "vedic"],
    "gurdwara": ["gurdwara", "gurudwara", "sikh", "khalsa", r"singh\s+sabha"],
    "mosque": ["mosque", "masjid", "islamic", "jamia", "musalla", "jamat"],
}

_DEFAULT_RELIGIOUS_TAGS = [
    "religiousorgs",
    "churches",
    "place_of_worship",
    "church",
    "hindu_temple",
    "mosque",
    "synagogue",
]

# Any tag containing one of these substrings is a religious signal
_DEFAULT_RELIGIOUS_TAG_KEYWORDS = ["religious"]

# First provider taxonomy (business-review category aliases), in priority order
_DEFAULT_CATEGORY_TIERS: list[tuple[str, list[str]]] = [
    ("restaurant", [
        "indpak", "indian", "pakistani", "srilankan", "bangladeshi",
        "afghani", "halal", "restaurants", "food",
    ]),
    ("cafe", [
        "desserts", "coffee", "tea", "bubbletea", "bakery", "bakeries",
        "cafes", "icecream",
    ]),
    ("grocer", ["grocery", "internationalgrocery", "markets", "ethnic_grocery"]),
    ("fashion", ["fashion", "clothing", "jewelry", "accessories", "shoes"]),
    ("beauty", [
        "beautysvc", "hair", "skincare", "makeupartists", "massage", "spas",
        "cosmetics",
    ]),
    ("dance", ["dancestudio", "culturalcenter", "nonprofit"]),
]

# Second provider taxonomy (generic place types). Bakeries and supermarkets
# also carry "food", so cafe and grocer are tried before restaurant.
_DEFAULT_TYPE_TIERS: list[tuple[str, list[str]]] = [
    ("cafe", ["bakery", "cafe"]),
    ("grocer", ["grocery_or_supermarket", "supermarket"]),
    ("restaurant", ["restaurant", "food", "meal_takeaway", "meal_delivery"]),
    ("fashion", ["clothing_store", "jewelry_store", "shoe_store"]),
    ("beauty", ["beauty_salon", "hair_care", "spa"]),
]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _compile_terms(terms: Iterable[str]) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(terms) + r")\b", re.IGNORECASE)


def _worship_patterns(
    terms: Mapping[str, Sequence[str]],
) -> tuple[tuple[CategoryLabel, re.Pattern[str]], ...]:
    patterns = []
    for label_name, label_terms in terms.items():
        label = CategoryLabel.parse(label_name)
        if not label.is_worship:
            raise ValueError(f"Worship terms given for non-worship label '{label.value}'")
        if not label_terms:
            raise ValueError(f"Empty worship term list for '{label.value}'")
        patterns.append((label, _compile_terms(label_terms)))
    return tuple(patterns)


def _tag_tiers(
    tiers: Sequence[tuple[str, Sequence[str]]],
    taxonomy: str,
) -> tuple[tuple[CategoryLabel, frozenset[str]], ...]:
    """Validate one taxonomy's tiers: known labels, disjoint keyword sets."""
    result = []
    owner: dict[str, CategoryLabel] = {}
    for label_name, keywords in tiers:
        label = CategoryLabel.parse(label_name)
        if label.is_worship or label is FALLBACK_LABEL:
            raise ValueError(
                f"{taxonomy}: '{label.value}' cannot be assigned from provider tags"
            )
        kw = frozenset(k.strip().lower() for k in keywords if k and k.strip())
        for k in kw:
            if k in owner and owner[k] is not label:
                raise ValueError(
                    f"{taxonomy}: tag '{k}' listed under both "
                    f"'{owner[k].value}' and '{label.value}'"
                )
            owner[k] = label
        result.append((label, kw))
    return tuple(result)


@dataclass(frozen=True)
class CategoryRules:
    """Compiled classifier configuration. Build once, share everywhere."""

    worship_patterns: tuple[tuple[CategoryLabel, re.Pattern[str]], ...]
    religious_org_patterns: tuple[tuple[CategoryLabel, re.Pattern[str]], ...]
    religious_tags: frozenset[str]
    religious_tag_keywords: tuple[str, ...]
    category_tiers: tuple[tuple[CategoryLabel, frozenset[str]], ...]
    type_tiers: tuple[tuple[CategoryLabel, frozenset[str]], ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        *,
        worship_terms: Mapping[str, Sequence[str]] = _DEFAULT_WORSHIP_TERMS,
        religious_org_terms: Mapping[str, Sequence[str]] = _DEFAULT_RELIGIOUS_ORG_TERMS,
        religious_tags: Iterable[str] = _DEFAULT_RELIGIOUS_TAGS,
        religious_tag_keywords: Iterable[str] = _DEFAULT_RELIGIOUS_TAG_KEYWORDS,
        category_tiers: Sequence[tuple[str, Sequence[str]]] = _DEFAULT_CATEGORY_TIERS,
        type_tiers: Sequence[tuple[str, Sequence[str]]] = _DEFAULT_TYPE_TIERS,
    ) -> "CategoryRules":
        return cls(
            worship_patterns=_worship_patterns(worship_terms),
            religious_org_patterns=_worship_patterns(religious_org_terms),
            religious_tags=frozenset(t.strip().lower() for t in religious_tags),
            religious_tag_keywords=tuple(k.strip().lower() for k in religious_tag_keywords),
            category_tiers=_tag_tiers(category_tiers, "category_tags"),
            type_tiers=_tag_tiers(type_tiers, "type_tags"),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CategoryRules":
        """
        Load keyword lists from a YAML file.

        Omitted sections fall back to the module defaults. Tier sections are
        lists of {label, tags} mappings evaluated in file order.
        """
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        def tiers(key: str, default):
            section = raw.get(key)
            if section is None:
                return default
            return [(entry["label"], entry.get("tags") or []) for entry in section]

        return cls.build(
            worship_terms=raw.get("worship_terms", _DEFAULT_WORSHIP_TERMS),
            religious_org_terms=raw.get("religious_org_terms", _DEFAULT_RELIGIOUS_ORG_TERMS),
            religious_tags=raw.get("religious_tags", _DEFAULT_RELIGIOUS_TAGS),
            religious_tag_keywords=raw.get("religious_tag_keywords", _DEFAULT_RELIGIOUS_TAG_KEYWORDS),
            category_tiers=tiers("category_tags", _DEFAULT_CATEGORY_TIERS),
            type_tiers=tiers("type_tags", _DEFAULT_TYPE_TIERS),
        )

    def is_religious_tag(self, tag: str) -> bool:
        return tag in self.religious_tags or any(
            kw in tag for kw in self.religious_tag_keywords
        )


DEFAULT_RULES = CategoryRules.build()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _check_name(name: str) -> str:
    if not isinstance(name, str):
        raise TypeError(f"name must be a string, got {type(name).__name__}")
    if not name.strip():
        raise ValueError("Cannot classify a place with an empty name")
    return name


def _clean_tags(tags: Iterable[str] | None) -> list[str]:
    if not tags:
        return []
    if isinstance(tags, str):
        tags = [tags]
    return [" ".join(str(t).lower().split()) for t in tags if t]


def _match_worship(
    name: str,
    patterns: tuple[tuple[CategoryLabel, re.Pattern[str]], ...],
) -> CategoryLabel | None:
    for label, pattern in patterns:
        if pattern.search(name):
            return label
    return None


def _match_tiers(
    tags: list[str],
    tiers: tuple[tuple[CategoryLabel, frozenset[str]], ...],
) -> CategoryLabel | None:
    if not tags:
        return None
    for label, keywords in tiers:
        if any(tag in keywords for tag in tags):
            return label
    return None


def classify(
    name: str,
    provider_category_tags: Iterable[str] | None = None,
    provider_type_tags: Iterable[str] | None = None,
    rules: CategoryRules | None = None,
) -> CategoryLabel:
    """
    Assign exactly one CategoryLabel to a place.

    Parameters
    ----------
    name : str
        The place name. Must be non-empty.
    provider_category_tags : iterable of str, optional
        Business-review style category aliases (e.g. "indpak", "religiousorgs").
    provider_type_tags : iterable of str, optional
        Generic place types (e.g. "restaurant", "place_of_worship").
    rules : CategoryRules, optional
        Keyword configuration. Uses DEFAULT_RULES if not provided.

    Raises
    ------
    TypeError  if name is not a string
    ValueError if name is empty or whitespace
    """
    _check_name(name)
    if rules is None:
        rules = DEFAULT_RULES

    category_tags = _clean_tags(provider_category_tags)
    type_tags = _clean_tags(provider_type_tags)

    # Tier 1: the name outranks every provider taxonomy
    label = _match_worship(name, rules.worship_patterns)
    if label is not None:
        logger.debug("classify %r → %s (worship name)", name, label.value)
        return label

    # Tier 2: tagged religious, resolve with the relaxed term lists
    if any(rules.is_religious_tag(t) for t in category_tags + type_tags):
        label = _match_worship(name, rules.religious_org_patterns) or FALLBACK_LABEL
        logger.debug("classify %r → %s (religious tag)", name, label.value)
        return label

    # Tier 3: first taxonomy, then second
    label = (
        _match_tiers(category_tags, rules.category_tiers)
        or _match_tiers(type_tags, rules.type_tiers)
    )
    if label is not None:
        logger.debug("classify %r → %s (provider tags)", name, label.value)
        return label

    # Tier 4
    return FALLBACK_LABEL


def classify_record(record, rules: CategoryRules | None = None) -> CategoryLabel:
    """Classify a PlaceRecord (or anything with the same attributes)."""
    return classify(
        record.name,
        record.provider_category_tags,
        record.provider_type_tags,
        rules=rules,
    )


# ---------------------------------------------------------------------------
# Data-quality checks
# ---------------------------------------------------------------------------


def correct_worship_category(
    name: str,
    rules: CategoryRules | None = None,
) -> CategoryLabel | None:
    """Worship label implied by the name alone, or None."""
    if not name:
        return None
    if rules is None:
        rules = DEFAULT_RULES
    return _match_worship(name, rules.worship_patterns)


def is_name_category_mismatch(
    name: str,
    assigned_label: "CategoryLabel | str",
    rules: CategoryRules | None = None,
) -> bool:
    """
    True when the name implies a place of worship but the record carries no
    worship label at all.

    A record filed under a different worship label ("Sikh Temple" stored as
    gurdwara) is not flagged. Used by periodic sweeps of the canonical
    directory, not for gating ingestion. Unknown assigned labels (legacy
    strings) are flagged.
    """
    implied = correct_worship_category(name, rules)
    if implied is None:
        return False
    try:
        current = CategoryLabel.parse(assigned_label)
    except ValueError:
        return True
    return not current.is_worship
