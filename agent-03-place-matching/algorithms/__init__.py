"""Place Matching & Classification Engine."""

from .string_similarity import (
    canonical_key,
    edit_distance,
    edit_similarity,
    name_similarity,
    normalize,
    prefix_weighted_similarity,
)
from .geo_proximity import (
    Coordinate,
    distance_meters,
    distance_score,
    find_nearby_candidates,
    within_bounds,
)
from .address_parser import StreetAddress, parse_street
from .place_record import PlaceRecord
from .composite_scorer import (
    MatchResult,
    ScorerConfig,
    address_score,
    best_match,
    compute_match,
    decide,
    score,
    score_candidate_pairs,
)
from .category_classifier import (
    DEFAULT_RULES,
    CategoryLabel,
    CategoryRules,
    classify,
    classify_record,
    correct_worship_category,
    is_name_category_mismatch,
)
from .region_validator import (
    METRO_VANCOUVER,
    RegionBounds,
    RegionCheck,
    is_eligible,
    is_metro_city,
    validate_region,
)

__all__ = [
    "canonical_key",
    "edit_distance",
    "edit_similarity",
    "name_similarity",
    "normalize",
    "prefix_weighted_similarity",
    "Coordinate",
    "distance_meters",
    "distance_score",
    "find_nearby_candidates",
    "within_bounds",
    "StreetAddress",
    "parse_street",
    "PlaceRecord",
    "MatchResult",
    "ScorerConfig",
    "address_score",
    "best_match",
    "compute_match",
    "decide",
    "score",
    "score_candidate_pairs",
    "DEFAULT_RULES",
    "CategoryLabel",
    "CategoryRules",
    "classify",
    "classify_record",
    "correct_worship_category",
    "is_name_category_mismatch",
    "METRO_VANCOUVER",
    "RegionBounds",
    "RegionCheck",
    "is_eligible",
    "is_metro_city",
    "validate_region",
]
