#!/usr/bin/env python3
"""
Place Matching Engine — Place Records

Immutable value records for candidate and canonical places, plus adapters
from the two external provider payloads:

    - Yelp Fusion business search results (category aliases → category tags)
    - Google Places text/nearby search results (types → type tags)

Coordinates that are present but non-numeric violate the record contract and
raise TypeError. Numeric coordinates outside valid WGS84 ranges are kept on
the record but reported invalid, and every consumer treats them as absent.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Iterable

from .geo_proximity import Coordinate

logger = logging.getLogger(__name__)

_MULTI_SPACE = re.compile(r"\s+")


def normalize_tag(tag: str) -> str:
    """Lowercase and collapse whitespace in an opaque provider tag."""
    return _MULTI_SPACE.sub(" ", str(tag).lower()).strip()


def normalize_tags(tags: Iterable[str] | None) -> tuple[str, ...]:
    """Normalise tags, dropping empties and repeats while keeping order."""
    if not tags:
        return ()
    if isinstance(tags, str):
        tags = [tags]
    seen: dict[str, None] = {}
    for tag in tags:
        norm = normalize_tag(tag)
        if norm:
            seen.setdefault(norm, None)
    return tuple(seen)


def _require_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(
            f"{field_name} must be a number, got {type(value).__name__}: {value!r}"
        )
    return float(value)


def make_coordinate(lat: Any, lng: Any) -> Coordinate | None:
    """
    Build a Coordinate from raw latitude/longitude values.

    Both missing → None. One missing, or either non-numeric → TypeError.
    """
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise TypeError("latitude and longitude must be provided together")
    coord = Coordinate(
        latitude=_require_number(lat, "latitude"),
        longitude=_require_number(lng, "longitude"),
    )
    if not coord.is_valid():
        logger.warning(
            "Malformed coordinates (%s, %s) will be ignored for scoring and geofencing",
            lat, lng,
        )
    return coord


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlaceRecord:
    """A candidate or canonical place as seen by the engine."""

    name: str
    address: str = ""
    coordinates: Coordinate | None = None
    provider_category_tags: tuple[str, ...] = field(default_factory=tuple)
    provider_type_tags: tuple[str, ...] = field(default_factory=tuple)
    country: str | None = None
    region: str | None = None
    city: str | None = None
    place_id: str | None = None
    source_id: str | None = None

    def __post_init__(self):
        if self.coordinates is not None:
            if not isinstance(self.coordinates, Coordinate):
                raise TypeError("coordinates must be a Coordinate or None")
            _require_number(self.coordinates.latitude, "latitude")
            _require_number(self.coordinates.longitude, "longitude")
        object.__setattr__(self, "provider_category_tags", normalize_tags(self.provider_category_tags))
        object.__setattr__(self, "provider_type_tags", normalize_tags(self.provider_type_tags))
        object.__setattr__(self, "address", self.address or "")

    @property
    def has_valid_coordinates(self) -> bool:
        return self.coordinates is not None and self.coordinates.is_valid()

    @property
    def latitude(self) -> float | None:
        return self.coordinates.latitude if self.coordinates else None

    @property
    def longitude(self) -> float | None:
        return self.coordinates.longitude if self.coordinates else None

    # ------------------------------------------------------------------
    # Plain-dict round trip (canonical directory / pipeline JSON files)
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlaceRecord":
        """Build from a flat JSON record with latitude/longitude keys."""
        return cls(
            name=data.get("name") or "",
            address=data.get("address") or "",
            coordinates=make_coordinate(data.get("latitude"), data.get("longitude")),
            provider_category_tags=tuple(data.get("provider_category_tags") or ()),
            provider_type_tags=tuple(data.get("provider_type_tags") or ()),
            country=data.get("country"),
            region=data.get("region"),
            city=data.get("city"),
            place_id=data.get("place_id"),
            source_id=data.get("source_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "place_id": self.place_id,
            "source_id": self.source_id,
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "provider_category_tags": list(self.provider_category_tags),
            "provider_type_tags": list(self.provider_type_tags),
            "country": self.country,
            "region": self.region,
        }

    # ------------------------------------------------------------------
    # Provider adapters
    # ------------------------------------------------------------------

    @classmethod
    def from_yelp_business(cls, business: dict[str, Any]) -> "PlaceRecord":
        """
        Convert a Yelp business search result.

        Category aliases become category tags; titles are kept as well so
        that "Religious Organizations"-style titles still carry the signal.
        """
        location = business.get("location") or {}
        coords = business.get("coordinates") or {}

        tags: list[str] = []
        for cat in business.get("categories") or []:
            if cat.get("alias"):
                tags.append(cat["alias"])
            if cat.get("title"):
                tags.append(cat["title"])

        display = location.get("display_address") or []
        address = ", ".join(display) if display else (location.get("address1") or "")

        return cls(
            name=business.get("name") or "",
            address=address,
            coordinates=make_coordinate(coords.get("latitude"), coords.get("longitude")),
            provider_category_tags=tuple(tags),
            country=location.get("country"),
            region=location.get("state"),
            city=location.get("city"),
            place_id=business.get("id"),
            source_id="yelp",
        )

    @classmethod
    def from_google_place(cls, place: dict[str, Any]) -> "PlaceRecord":
        """
        Convert a Google Places search result.

        Country and province come from address_components when the payload
        carries them; otherwise they are left absent.
        """
        location = (place.get("geometry") or {}).get("location") or {}

        country = None
        region = None
        city = None
        for comp in place.get("address_components") or []:
            types = comp.get("types", [])
            if "country" in types:
                country = comp.get("short_name")
            elif "administrative_area_level_1" in types:
                region = comp.get("short_name")
            elif "locality" in types and city is None:
                city = comp.get("long_name")
            elif "administrative_area_level_2" in types and city is None:
                city = comp.get("long_name")

        return cls(
            name=place.get("name") or "",
            address=place.get("formatted_address") or "",
            coordinates=make_coordinate(location.get("lat"), location.get("lng")),
            provider_type_tags=tuple(place.get("types") or ()),
            country=country,
            region=region,
            city=city,
            place_id=place.get("place_id"),
            source_id="google",
        )


def coerce_record(value: PlaceRecord | dict[str, Any]) -> PlaceRecord:
    """Accept either a PlaceRecord or its flat dict form."""
    if isinstance(value, PlaceRecord):
        return value
    if isinstance(value, dict):
        return PlaceRecord.from_dict(value)
    raise TypeError(f"Expected PlaceRecord or dict, got {type(value).__name__}")
