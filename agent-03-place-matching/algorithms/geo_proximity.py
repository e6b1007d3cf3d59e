#!/usr/bin/env python3
"""
Place Matching Engine — Geospatial Utilities

Great-circle distance between place coordinates using the Haversine formula,
rectangular geofence membership, and a linear distance decay used by the
composite scorer.

No external geo-libraries required — pure math with stdlib.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Protocol


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EARTH_RADIUS_M = 6_371_000.0

# Linear decay window for the distance sub-score
DEFAULT_FULL_MATCH_M = 50.0     # at or below: score 1.0
DEFAULT_ZERO_MATCH_M = 200.0    # at or beyond: score 0.0

# Radius used when pre-filtering canonical records around a candidate
DEFAULT_SEARCH_RADIUS_M = 500.0


class Bounds(Protocol):
    north: float
    south: float
    east: float
    west: float


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 coordinate pair in decimal degrees."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        """Finite and within -90..90 latitude, -180..180 longitude."""
        return (
            math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
            and -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )


# ---------------------------------------------------------------------------
# Core distance calculation
# ---------------------------------------------------------------------------


def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance in metres between two points on a spherical Earth.

    No range validation is performed; NaN inputs yield NaN.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def haversine_m(coord_a: Coordinate, coord_b: Coordinate) -> float:
    """Distance in metres between two Coordinate values."""
    return distance_meters(
        coord_a.latitude, coord_a.longitude,
        coord_b.latitude, coord_b.longitude,
    )


def within_bounds(lat: float, lng: float, bounds: Bounds) -> bool:
    """Inclusive rectangular geofence test."""
    return (
        bounds.south <= lat <= bounds.north
        and bounds.west <= lng <= bounds.east
    )


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def distance_score(
    distance_m: float,
    *,
    full_match_m: float = DEFAULT_FULL_MATCH_M,
    zero_match_m: float = DEFAULT_ZERO_MATCH_M,
) -> float:
    """
    Map a distance to a proximity score in [0.0, 1.0].

    Scoring curve:
        - distance <= full_match_m → 1.0
        - distance >= zero_match_m → 0.0
        - in between               → linear decay

    With the defaults, 125 m sits at the midpoint and scores 0.5.
    """
    span = zero_match_m - full_match_m
    if span <= 0:
        return 1.0 if distance_m <= full_match_m else 0.0
    raw = (zero_match_m - distance_m) / span
    return max(0.0, min(1.0, raw))


# ---------------------------------------------------------------------------
# Candidate filtering
# ---------------------------------------------------------------------------


def bounding_box_filter(
    target: Coordinate,
    radius_m: float,
) -> tuple[float, float, float, float]:
    """
    Return a lat/lon bounding box that encloses a circle of the given radius
    around the target coordinate.

    Returns (min_lat, max_lat, min_lon, max_lon) in degrees.
    """
    lat_delta = radius_m / EARTH_RADIUS_M * (180.0 / math.pi)
    lon_delta = lat_delta / max(math.cos(math.radians(target.latitude)), 1e-12)

    return (
        target.latitude - lat_delta,
        target.latitude + lat_delta,
        target.longitude - lon_delta,
        target.longitude + lon_delta,
    )


def find_nearby_candidates(
    target: Coordinate,
    candidates: list[Any],
    radius_m: float = DEFAULT_SEARCH_RADIUS_M,
) -> list[tuple[Any, float]]:
    """
    Filter records (anything with a ``coordinates`` attribute) to those
    within radius_m of the target.

    Uses a bounding-box pre-filter then the exact Haversine check. Records
    without valid coordinates are skipped. Returns (record, distance_m)
    tuples sorted by distance ascending.
    """
    min_lat, max_lat, min_lon, max_lon = bounding_box_filter(target, radius_m)

    nearby = []
    for rec in candidates:
        coord = getattr(rec, "coordinates", None)
        if coord is None or not coord.is_valid():
            continue
        if not (min_lat <= coord.latitude <= max_lat and min_lon <= coord.longitude <= max_lon):
            continue
        dist = haversine_m(target, coord)
        if dist <= radius_m:
            nearby.append((rec, dist))

    nearby.sort(key=lambda pair: pair[1])
    return nearby
