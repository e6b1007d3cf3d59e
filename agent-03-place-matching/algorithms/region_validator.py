#!/usr/bin/env python3
"""
Place Matching Engine — Region Validator

Service-area gate applied before a provider record enters matching or
classification. Providers return globally scoped search results; anything
that provably lies outside the configured region is dropped here.

Only a mismatch rejects. A record missing coordinates, country, or region is
accepted on that field.

The geofence is a rectangle, not a polygon, so corners of the box that sit
outside the real service area are accepted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .geo_proximity import within_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionBounds:
    """Bounding box plus accepted country/region codes. Never mutated."""

    north: float
    south: float
    east: float
    west: float
    accepted_country: str | None = None
    accepted_regions: frozenset[str] = field(default_factory=frozenset)
    cities: tuple[str, ...] = ()

    def __post_init__(self):
        if self.south > self.north:
            raise ValueError(f"south ({self.south}) is greater than north ({self.north})")
        if self.west > self.east:
            raise ValueError(f"west ({self.west}) is greater than east ({self.east})")
        object.__setattr__(
            self,
            "accepted_regions",
            frozenset(r.strip().upper() for r in self.accepted_regions),
        )
        if self.accepted_country:
            object.__setattr__(self, "accepted_country", self.accepted_country.strip().upper())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RegionBounds":
        """Load region configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        box = raw.get("bounds", {})
        missing = [k for k in ("north", "south", "east", "west") if k not in box]
        if missing:
            raise ValueError(f"Region config {path} is missing bounds: {', '.join(missing)}")

        return cls(
            north=float(box["north"]),
            south=float(box["south"]),
            east=float(box["east"]),
            west=float(box["west"]),
            accepted_country=raw.get("accepted_country"),
            accepted_regions=frozenset(raw.get("accepted_regions") or ()),
            cities=tuple(raw.get("cities") or ()),
        )


# Metro Vancouver service area
METRO_VANCOUVER = RegionBounds(
    north=49.45,    # North of North Vancouver
    south=49.0,     # South of Richmond/Delta
    east=-122.4,    # East of Burnaby/Coquitlam
    west=-123.45,   # West of West Vancouver/Richmond
    accepted_country="CA",
    accepted_regions=frozenset({"BC", "British Columbia"}),
    cities=(
        "Vancouver", "Burnaby", "Richmond", "Surrey", "Langley",
        "North Vancouver", "West Vancouver", "Coquitlam", "Port Coquitlam",
        "Port Moody", "New Westminster", "Delta", "White Rock",
        "Pitt Meadows", "Maple Ridge", "Anmore", "Belcarra", "Bowen Island",
        "Lions Bay",
    ),
)


@dataclass
class RegionCheck:
    """Outcome of the region gate for one record."""

    accepted: bool
    reasons: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.accepted

    def to_dict(self) -> dict[str, Any]:
        return {"accepted": self.accepted, "reasons": list(self.reasons)}


def _code(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip().upper()
    return text or None


def validate_region(record, bounds: RegionBounds = METRO_VANCOUVER) -> RegionCheck:
    """
    Check a PlaceRecord against the service area.

    Rejection reasons:
        - outside_bounds   : valid coordinates outside the bounding box
        - country_mismatch : country present and not the accepted country
        - region_mismatch  : region present and not an accepted region
    """
    reasons: list[str] = []

    coord = record.coordinates
    if coord is not None and coord.is_valid():
        if not within_bounds(coord.latitude, coord.longitude, bounds):
            reasons.append("outside_bounds")

    country = _code(record.country)
    if country and bounds.accepted_country and country != bounds.accepted_country:
        reasons.append("country_mismatch")

    region = _code(record.region)
    if region and bounds.accepted_regions and region not in bounds.accepted_regions:
        reasons.append("region_mismatch")

    if reasons:
        logger.debug("Rejected %r: %s", record.name, ", ".join(reasons))
    return RegionCheck(accepted=not reasons, reasons=reasons)


def is_eligible(record, bounds: RegionBounds = METRO_VANCOUVER) -> bool:
    """True when the record may enter the matching pipeline."""
    return validate_region(record, bounds).accepted


def is_metro_city(city: str | None, bounds: RegionBounds = METRO_VANCOUVER) -> bool:
    """
    True when the city names one of the region's municipalities.

    Matches exact names and strings that contain one ("Vancouver, BC").
    """
    if not city:
        return False
    needle = city.strip().lower()
    return any(c.lower() == needle or c.lower() in needle for c in bounds.cities)
