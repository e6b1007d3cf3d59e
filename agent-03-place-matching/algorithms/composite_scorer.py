#!/usr/bin/env python3
"""
Place Matching Engine — Composite Place Scorer

Combines name similarity, street-address similarity, and geographic distance
into a single match confidence (0.0–1.0) that a candidate provider record
and a canonical record denote the same real-world place.

    composite = 0.40 × name + 0.35 × address + 0.25 × distance

Names are the most directly comparable field, provider address strings are
the noisiest, and distance alone cannot tell neighbouring units apart.

The raw score is always exposed. Merge / review / new-record cut-offs are
policy, applied by decide() from configurable thresholds.

Dependencies:
    pip install rapidfuzz pyyaml
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

from .address_parser import parse_street
from .geo_proximity import (
    DEFAULT_FULL_MATCH_M,
    DEFAULT_ZERO_MATCH_M,
    distance_score,
    haversine_m,
)
from .place_record import PlaceRecord, coerce_record
from .string_similarity import name_similarity, normalize, prefix_weighted_similarity


# ---------------------------------------------------------------------------
# Defaults (overridden by match_rules.yaml at runtime)
# ---------------------------------------------------------------------------

_DEFAULT_WEIGHTS = {
    "name": 0.40,
    "address": 0.35,
    "distance": 0.25,
}

_DEFAULT_THRESHOLDS = {
    "auto_merge": 0.85,
    "review_lower": 0.70,
}

_DEFAULT_DISTANCE = {
    "full_match_m": DEFAULT_FULL_MATCH_M,
    "zero_match_m": DEFAULT_ZERO_MATCH_M,
    "missing_score": 0.5,
}

_DEFAULT_ADDRESS = {
    "number_mismatch_score": 0.2,
    "number_match_bonus": 0.2,
}


# ---------------------------------------------------------------------------
# Configuration loader
# ---------------------------------------------------------------------------


@dataclass
class ScorerConfig:
    """Loaded scorer configuration from match_rules.yaml."""

    weights: dict[str, float] = field(default_factory=lambda: dict(_DEFAULT_WEIGHTS))
    thresholds: dict[str, float] = field(default_factory=lambda: dict(_DEFAULT_THRESHOLDS))
    distance: dict[str, float] = field(default_factory=lambda: dict(_DEFAULT_DISTANCE))
    address: dict[str, float] = field(default_factory=lambda: dict(_DEFAULT_ADDRESS))

    def __post_init__(self):
        if any(w < 0 for w in self.weights.values()):
            raise ValueError(f"Scorer weights must be non-negative: {self.weights}")
        if sum(self.weights.values()) <= 0:
            raise ValueError("Scorer weights must not all be zero")
        if self.thresholds["review_lower"] > self.thresholds["auto_merge"]:
            raise ValueError(
                "review_lower threshold must not exceed auto_merge threshold"
            )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ScorerConfig":
        """Load configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        def section(key: str, defaults: dict[str, float]) -> dict[str, float]:
            values = raw.get(key) or {}
            return {k: float(values.get(k, v)) for k, v in defaults.items()}

        return cls(
            weights=section("weights", _DEFAULT_WEIGHTS),
            thresholds=section("thresholds", _DEFAULT_THRESHOLDS),
            distance=section("distance", _DEFAULT_DISTANCE),
            address=section("address", _DEFAULT_ADDRESS),
        )


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def name_score(candidate: PlaceRecord, canonical: PlaceRecord) -> float:
    return name_similarity(candidate.name, canonical.name)


def address_score(
    address_a: str | None,
    address_b: str | None,
    *,
    number_mismatch_score: float = _DEFAULT_ADDRESS["number_mismatch_score"],
    number_match_bonus: float = _DEFAULT_ADDRESS["number_match_bonus"],
) -> float:
    """
    Compare two free-text addresses by street number and street name.

    Scoring:
        - both numbers present and different → number_mismatch_score,
          whatever the street names say
        - otherwise prefix-weighted similarity of the street names,
          plus number_match_bonus (capped at 1.0) when the numbers match
    """
    street_a = parse_street(address_a)
    street_b = parse_street(address_b)

    if street_a.number and street_b.number and street_a.number != street_b.number:
        return number_mismatch_score

    sim = prefix_weighted_similarity(normalize(street_a.name), normalize(street_b.name))

    if street_a.number and street_a.number == street_b.number:
        return min(1.0, sim + number_match_bonus)

    return sim


def distance_between(candidate: PlaceRecord, canonical: PlaceRecord) -> float | None:
    """Metres between two records, or None when either lacks valid coordinates."""
    if not (candidate.has_valid_coordinates and canonical.has_valid_coordinates):
        return None
    return haversine_m(candidate.coordinates, canonical.coordinates)


# ---------------------------------------------------------------------------
# Composite scorer
# ---------------------------------------------------------------------------


@dataclass
class MatchResult:
    """Detailed result of comparing a candidate with a canonical record."""

    candidate_id: str | None
    canonical_id: str | None
    name_score: float
    address_score: float
    distance_score: float
    distance_m: float | None
    match_confidence: float
    decision: str  # "auto_merge" | "review" | "no_match"

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "canonical_id": self.canonical_id,
            "name_score": self.name_score,
            "address_score": self.address_score,
            "distance_score": self.distance_score,
            "distance_m": self.distance_m,
            "match_confidence": self.match_confidence,
            "decision": self.decision,
        }


def decide(confidence: float, thresholds: dict[str, float]) -> str:
    """Map a confidence score to a merge decision."""
    if confidence >= thresholds["auto_merge"]:
        return "auto_merge"
    if confidence >= thresholds["review_lower"]:
        return "review"
    return "no_match"


def _sub_scores(
    candidate: PlaceRecord,
    canonical: PlaceRecord,
    config: ScorerConfig,
) -> tuple[float, float, float, float | None]:
    n = name_score(candidate, canonical)
    a = address_score(
        candidate.address,
        canonical.address,
        number_mismatch_score=config.address["number_mismatch_score"],
        number_match_bonus=config.address["number_match_bonus"],
    )

    dist = distance_between(candidate, canonical)
    if dist is None:
        d = config.distance["missing_score"]
    else:
        d = distance_score(
            dist,
            full_match_m=config.distance["full_match_m"],
            zero_match_m=config.distance["zero_match_m"],
        )
    return n, a, d, dist


def _combine(n: float, a: float, d: float, weights: dict[str, float]) -> float:
    total = weights["name"] + weights["address"] + weights["distance"]
    composite = (weights["name"] * n + weights["address"] * a + weights["distance"] * d) / total
    return max(0.0, min(1.0, composite))


def score(
    candidate: PlaceRecord | dict[str, Any],
    canonical: PlaceRecord | dict[str, Any],
    config: ScorerConfig | None = None,
) -> float:
    """
    Raw composite confidence in [0.0, 1.0] that two records are one place.

    Pure function: no thresholds applied, nothing persisted.
    """
    if config is None:
        config = ScorerConfig()
    n, a, d, _ = _sub_scores(coerce_record(candidate), coerce_record(canonical), config)
    return _combine(n, a, d, config.weights)


def compute_match(
    candidate: PlaceRecord | dict[str, Any],
    canonical: PlaceRecord | dict[str, Any],
    config: ScorerConfig | None = None,
) -> MatchResult:
    """
    Score a candidate against a canonical record and apply the decision
    thresholds.

    Parameters
    ----------
    candidate, canonical : PlaceRecord or dict
        Records to compare. Dicts use the flat PlaceRecord.to_dict() shape.
    config : ScorerConfig, optional
        Scoring configuration. Uses defaults if not provided.

    Returns
    -------
    MatchResult with rounded sub-scores, the composite match_confidence,
    and a decision string.
    """
    if config is None:
        config = ScorerConfig()
    candidate = coerce_record(candidate)
    canonical = coerce_record(canonical)

    n, a, d, dist = _sub_scores(candidate, canonical, config)
    composite = _combine(n, a, d, config.weights)

    return MatchResult(
        candidate_id=candidate.place_id,
        canonical_id=canonical.place_id,
        name_score=round(n, 4),
        address_score=round(a, 4),
        distance_score=round(d, 4),
        distance_m=round(dist, 1) if dist is not None else None,
        match_confidence=round(composite, 4),
        decision=decide(composite, config.thresholds),
    )


# ---------------------------------------------------------------------------
# Batch processing
# ---------------------------------------------------------------------------


def best_match(
    candidate: PlaceRecord | dict[str, Any],
    canonicals: Iterable[PlaceRecord | dict[str, Any]],
    config: ScorerConfig | None = None,
    *,
    min_score: float = 0.0,
) -> MatchResult | None:
    """
    Highest-confidence canonical for a candidate, or None when no canonical
    reaches min_score. Ties keep the first canonical seen.
    """
    best: MatchResult | None = None
    for canonical in canonicals:
        result = compute_match(candidate, canonical, config)
        if result.match_confidence < min_score:
            continue
        if best is None or result.match_confidence > best.match_confidence:
            best = result
    return best


def _score_pair(job: tuple[PlaceRecord, PlaceRecord, ScorerConfig]) -> MatchResult:
    candidate, canonical, config = job
    return compute_match(candidate, canonical, config)


def score_candidate_pairs(
    pairs: list[tuple[PlaceRecord, PlaceRecord]],
    config: ScorerConfig | None = None,
    *,
    max_workers: int | None = None,
    processes: bool = False,
    mp_context=None,
) -> list[MatchResult]:
    """
    Score a list of (candidate, canonical) pairs.

    Pairs are independent, so with max_workers > 1 they are fanned out over
    a worker pool. Scoring is CPU-bound, so a thread pool overlaps little
    work; pass processes=True to spread pairs across CPU cores instead.
    mp_context is handed to the ProcessPoolExecutor unchanged.

    Returns MatchResult objects sorted by match_confidence descending.
    """
    if config is None:
        config = ScorerConfig()

    jobs = [(a, b, config) for a, b in pairs]

    if max_workers and max_workers > 1 and len(jobs) > 1:
        if processes:
            executor = ProcessPoolExecutor(max_workers=max_workers, mp_context=mp_context)
            chunksize = max(1, len(jobs) // (max_workers * 4))
        else:
            executor = ThreadPoolExecutor(max_workers=max_workers)
            chunksize = 1
        with executor:
            results = list(executor.map(_score_pair, jobs, chunksize=chunksize))
    else:
        results = [_score_pair(job) for job in jobs]

    results.sort(key=lambda r: r.match_confidence, reverse=True)
    return results
