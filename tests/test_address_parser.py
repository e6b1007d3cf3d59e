"""Tests for agent-03-place-matching — address parser."""

import pytest

from agent_03_place_matching.algorithms.address_parser import StreetAddress, parse_street


class TestParseStreet:
    @pytest.mark.parametrize(
        "address, expected",
        [
            ("123 Main Street", ("123", "main")),
            ("123 Main", ("123", "main")),
            ("123 main st.", ("123", "main")),
            ("456 Fraser St, Vancouver, BC", ("456", "fraser")),
            ("2626 Kingsway, Vancouver", ("2626", "kingsway")),
            ("8280 128 Street, Surrey", ("8280", "128")),
            ("900 W Georgia Blvd Suite 200", ("900", "w georgia")),
        ],
    )
    def test_numbered_addresses(self, address, expected):
        assert parse_street(address) == expected

    def test_leading_roadway_word_is_kept(self):
        assert parse_street("12 St Andrews Way") == ("12", "st andrews")

    def test_no_leading_number_degrades_to_full_name(self):
        result = parse_street("Kingsway & Fraser, Vancouver")
        assert result.number == ""
        assert result.name == "kingsway fraser vancouver"

    def test_unit_prefix_is_not_a_street_number(self):
        assert parse_street("Unit 5, 123 Main St") == ("", "unit 5 123 main st")

    def test_empty_and_none(self):
        assert parse_street("") == ("", "")
        assert parse_street(None) == ("", "")

    def test_returns_named_tuple(self):
        result = parse_street("123 Main Street")
        assert isinstance(result, StreetAddress)
        assert result.number == "123"
        assert result.name == "main"
