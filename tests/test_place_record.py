"""Tests for agent-03-place-matching — place records and provider adapters."""

import pytest

from agent_03_place_matching.algorithms.geo_proximity import Coordinate
from agent_03_place_matching.algorithms.place_record import (
    PlaceRecord,
    coerce_record,
    make_coordinate,
    normalize_tags,
)


# ---- tags -------------------------------------------------------------------


class TestNormalizeTags:
    def test_lowercases_and_collapses(self):
        assert normalize_tags(["  Indian   Food ", "HALAL"]) == ("indian food", "halal")

    def test_drops_empties_and_repeats_keeping_order(self):
        assert normalize_tags(["indpak", "", "  ", "Indpak", "halal"]) == ("indpak", "halal")

    def test_none_and_empty(self):
        assert normalize_tags(None) == ()
        assert normalize_tags([]) == ()

    def test_single_string(self):
        assert normalize_tags("Restaurants") == ("restaurants",)


# ---- coordinates ------------------------------------------------------------


class TestMakeCoordinate:
    def test_both_missing(self):
        assert make_coordinate(None, None) is None

    def test_numeric(self):
        assert make_coordinate(49.25, -123) == Coordinate(49.25, -123.0)

    def test_string_raises(self):
        with pytest.raises(TypeError):
            make_coordinate("49.25", -123.1)

    def test_bool_raises(self):
        with pytest.raises(TypeError):
            make_coordinate(True, -123.1)

    def test_one_sided_raises(self):
        with pytest.raises(TypeError):
            make_coordinate(49.25, None)

    def test_out_of_range_does_not_raise(self):
        coord = make_coordinate(123.0, -123.1)
        assert coord is not None
        assert not coord.is_valid()


# ---- PlaceRecord ------------------------------------------------------------


class TestPlaceRecord:
    def test_defaults(self):
        rec = PlaceRecord(name="Ram Mandir")
        assert rec.address == ""
        assert rec.coordinates is None
        assert rec.provider_category_tags == ()
        assert rec.provider_type_tags == ()
        assert not rec.has_valid_coordinates
        assert rec.latitude is None

    def test_tags_normalised_on_construction(self):
        rec = PlaceRecord(name="X", provider_category_tags=["Indpak", "HALAL"])
        assert rec.provider_category_tags == ("indpak", "halal")

    def test_invalid_coordinates_flagged_not_raised(self):
        rec = PlaceRecord(name="X", coordinates=Coordinate(95.0, -123.1))
        assert not rec.has_valid_coordinates

    def test_non_coordinate_raises(self):
        with pytest.raises(TypeError):
            PlaceRecord(name="X", coordinates=(49.25, -123.1))  # type: ignore[arg-type]

    def test_non_numeric_coordinate_fields_raise(self):
        with pytest.raises(TypeError):
            PlaceRecord(name="X", coordinates=Coordinate("49.25", -123.1))  # type: ignore[arg-type]

    def test_frozen(self):
        rec = PlaceRecord(name="X")
        with pytest.raises(AttributeError):
            rec.name = "Y"  # type: ignore[misc]

    def test_dict_round_trip(self):
        data = {
            "place_id": "canon-0001",
            "source_id": "google",
            "name": "Gurdwara Sahib",
            "address": "456 Fraser St",
            "city": "Vancouver",
            "latitude": 49.25,
            "longitude": -123.10,
            "provider_category_tags": ["religiousorgs"],
            "provider_type_tags": ["place_of_worship"],
            "country": "CA",
            "region": "BC",
        }
        rec = PlaceRecord.from_dict(data)
        assert rec.to_dict() == data

    def test_from_dict_missing_fields(self):
        rec = PlaceRecord.from_dict({"name": "Ram Mandir"})
        assert rec.coordinates is None
        assert rec.country is None
        assert rec.address == ""

    def test_from_dict_string_coordinates_raise(self):
        with pytest.raises(TypeError):
            PlaceRecord.from_dict({"name": "X", "latitude": "49.2", "longitude": "-123.1"})


class TestCoerceRecord:
    def test_passthrough(self):
        rec = PlaceRecord(name="X")
        assert coerce_record(rec) is rec

    def test_from_dict(self):
        assert coerce_record({"name": "X"}).name == "X"

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            coerce_record(["X"])  # type: ignore[arg-type]


# ---- provider adapters ------------------------------------------------------


class TestFromYelpBusiness:
    BUSINESS = {
        "id": "tandoori-flame-vancouver",
        "name": "Tandoori Flame",
        "coordinates": {"latitude": 49.2766, "longitude": -123.1003},
        "location": {
            "address1": "123 Main St",
            "city": "Vancouver",
            "state": "BC",
            "country": "CA",
            "display_address": ["123 Main St", "Vancouver, BC V6A 2S5"],
        },
        "categories": [
            {"alias": "indpak", "title": "Indian"},
            {"alias": "halal", "title": "Halal"},
        ],
    }

    def test_fields(self):
        rec = PlaceRecord.from_yelp_business(self.BUSINESS)
        assert rec.place_id == "tandoori-flame-vancouver"
        assert rec.source_id == "yelp"
        assert rec.address == "123 Main St, Vancouver, BC V6A 2S5"
        assert rec.coordinates == Coordinate(49.2766, -123.1003)
        assert rec.country == "CA"
        assert rec.region == "BC"
        assert rec.city == "Vancouver"

    def test_aliases_and_titles_become_category_tags(self):
        rec = PlaceRecord.from_yelp_business(self.BUSINESS)
        assert rec.provider_category_tags == ("indpak", "indian", "halal")
        assert rec.provider_type_tags == ()

    def test_missing_blocks(self):
        rec = PlaceRecord.from_yelp_business({"name": "Nameless Cafe"})
        assert rec.coordinates is None
        assert rec.address == ""
        assert rec.country is None


class TestFromGooglePlace:
    PLACE = {
        "place_id": "ChIJ_demo_001",
        "name": "Gurdwara Sahib",
        "formatted_address": "456 Fraser St, Vancouver, BC V5V 4G3, Canada",
        "geometry": {"location": {"lat": 49.25, "lng": -123.10}},
        "types": ["place_of_worship", "point_of_interest", "establishment"],
        "address_components": [
            {"long_name": "456", "short_name": "456", "types": ["street_number"]},
            {"long_name": "Vancouver", "short_name": "Vancouver", "types": ["locality", "political"]},
            {"long_name": "British Columbia", "short_name": "BC",
             "types": ["administrative_area_level_1", "political"]},
            {"long_name": "Canada", "short_name": "CA", "types": ["country", "political"]},
        ],
    }

    def test_fields(self):
        rec = PlaceRecord.from_google_place(self.PLACE)
        assert rec.place_id == "ChIJ_demo_001"
        assert rec.source_id == "google"
        assert rec.coordinates == Coordinate(49.25, -123.10)
        assert rec.country == "CA"
        assert rec.region == "BC"
        assert rec.city == "Vancouver"
        assert rec.provider_type_tags == ("place_of_worship", "point_of_interest", "establishment")

    def test_without_address_components(self):
        place = {k: v for k, v in self.PLACE.items() if k != "address_components"}
        rec = PlaceRecord.from_google_place(place)
        assert rec.country is None
        assert rec.region is None
