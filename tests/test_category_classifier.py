"""Tests for agent-03-place-matching — category classifier."""

from pathlib import Path

import pytest

from agent_03_place_matching.algorithms.category_classifier import (
    DEFAULT_RULES,
    CategoryLabel,
    CategoryRules,
    classify,
    classify_record,
    correct_worship_category,
    is_name_category_mismatch,
)
from agent_03_place_matching.algorithms.place_record import PlaceRecord

CONFIG_DIR = Path(__file__).resolve().parent.parent / "agent-03-place-matching" / "config"


# ---- worship names ----------------------------------------------------------


class TestWorshipOverride:
    def test_mandir_beats_restaurant_tags(self):
        assert classify("Ram Mandir", ["restaurants"]) is CategoryLabel.TEMPLE

    def test_gurdwara(self):
        assert classify("Gurdwara Sahib") is CategoryLabel.GURDWARA

    def test_temple_terms_are_tried_first(self):
        assert classify("Guru Nanak Sikh Temple") is CategoryLabel.TEMPLE
        assert classify("Sikh Hindu Cultural Society") is CategoryLabel.TEMPLE

    def test_sikh_terms_before_islamic_terms(self):
        assert classify("Sikh Jamia Hall") is CategoryLabel.GURDWARA

    @pytest.mark.parametrize("name", ["Masjid Al-Noor", "Vancouver Islamic Centre", "Jamia Mosque"])
    def test_mosque(self, name):
        assert classify(name, ["indpak"], ["restaurant"]) is CategoryLabel.MOSQUE

    @pytest.mark.parametrize("name", ["Shri Krishna Mandir", "ISKCON Vancouver", "Hindu Temple Society"])
    def test_temple(self, name):
        assert classify(name) is CategoryLabel.TEMPLE

    def test_case_insensitive(self):
        assert classify("GURDWARA SAHIB", ["grocery"]) is CategoryLabel.GURDWARA

    def test_terms_match_whole_words_only(self):
        assert classify("Templeton Pub", ["restaurants"]) is CategoryLabel.RESTAURANT
        assert classify("Saigon Kitchen", ["restaurants"]) is CategoryLabel.RESTAURANT


# ---- religious provider tags ------------------------------------------------


class TestReligiousTags:
    def test_islamic_society_needs_a_religious_tag(self):
        assert classify("Islamic Society") is CategoryLabel.ORG
        assert classify("Islamic Society", ["religiousorgs"]) is CategoryLabel.MOSQUE

    def test_relaxed_gurdwara_terms(self):
        assert classify("Khalsa Diwan Society", ["religiousorgs"]) is CategoryLabel.GURDWARA

    def test_relaxed_terms_try_temple_first(self):
        assert classify("Vedic Khalsa Society", ["religiousorgs"]) is CategoryLabel.TEMPLE

    def test_relaxed_temple_terms_via_type_tags(self):
        assert classify("Vedic Society", None, ["place_of_worship"]) is CategoryLabel.TEMPLE

    def test_church_becomes_org(self):
        assert classify("St. Mary's Church", ["churches"]) is CategoryLabel.ORG

    def test_religious_tag_outranks_category_tiers(self):
        assert classify("St. Mary's Church", ["churches", "restaurants"]) is CategoryLabel.ORG

    def test_religious_keyword_substring(self):
        assert classify("Community Hall", ["religious_center"]) is CategoryLabel.ORG


# ---- category tiers ---------------------------------------------------------


class TestCategoryTiers:
    @pytest.mark.parametrize(
        "tags, expected",
        [
            (["indpak"], CategoryLabel.RESTAURANT),
            (["desserts"], CategoryLabel.CAFE),
            (["internationalgrocery"], CategoryLabel.GROCER),
            (["jewelry"], CategoryLabel.FASHION),
            (["beautysvc"], CategoryLabel.BEAUTY),
            (["dancestudio"], CategoryLabel.DANCE),
        ],
    )
    def test_first_taxonomy(self, tags, expected):
        assert classify("Punjab Market", tags) is expected

    @pytest.mark.parametrize(
        "types, expected",
        [
            (["bakery", "food", "store"], CategoryLabel.CAFE),
            (["supermarket", "food"], CategoryLabel.GROCER),
            (["meal_takeaway"], CategoryLabel.RESTAURANT),
            (["clothing_store"], CategoryLabel.FASHION),
            (["hair_care"], CategoryLabel.BEAUTY),
        ],
    )
    def test_second_taxonomy(self, types, expected):
        assert classify("Punjab Market", None, types) is expected

    def test_tier_order_within_taxonomy(self):
        assert classify("Chai House", ["coffee", "indpak"]) is CategoryLabel.RESTAURANT

    def test_first_taxonomy_before_second(self):
        assert classify("Sweet Spot", ["desserts"], ["restaurant"]) is CategoryLabel.CAFE

    def test_tags_are_normalised(self):
        assert classify("Punjab Market", ["  InternationalGrocery "]) is CategoryLabel.GROCER

    def test_fallback_is_org(self):
        assert classify("Unknown Place", ["tattoo"], ["point_of_interest"]) is CategoryLabel.ORG
        assert classify("Unknown Place") is CategoryLabel.ORG


# ---- input validation -------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name(self, name):
        with pytest.raises(ValueError):
            classify(name, ["restaurants"])

    def test_non_string_name(self):
        with pytest.raises(TypeError):
            classify(None)  # type: ignore[arg-type]

    def test_classify_record(self):
        rec = PlaceRecord(name="Ram Mandir", provider_category_tags=("restaurants",))
        assert classify_record(rec) is CategoryLabel.TEMPLE


# ---- data-quality checks ----------------------------------------------------


class TestMismatch:
    def test_correct_worship_category(self):
        assert correct_worship_category("Ram Mandir") is CategoryLabel.TEMPLE
        assert correct_worship_category("Tandoori Flame") is None
        assert correct_worship_category("") is None

    def test_mandir_filed_as_restaurant(self):
        assert is_name_category_mismatch("Ram Mandir", "restaurant")
        assert is_name_category_mismatch("Ram Mandir", CategoryLabel.RESTAURANT)

    def test_consistent_labels(self):
        assert not is_name_category_mismatch("Ram Mandir", "temple")
        assert not is_name_category_mismatch("Ram Mandir", "Temple")
        assert not is_name_category_mismatch("Tandoori Flame", "restaurant")

    def test_other_worship_label_is_not_a_mismatch(self):
        assert not is_name_category_mismatch("Sikh Temple", "gurdwara")
        assert not is_name_category_mismatch("Guru Nanak Sikh Temple", "temple")
        assert not is_name_category_mismatch("Masjid Al-Noor", CategoryLabel.TEMPLE)

    def test_non_worship_label_is_a_mismatch(self):
        assert is_name_category_mismatch("Sikh Temple", "org")
        assert is_name_category_mismatch("Masjid Al-Noor", "Community Organization")

    def test_unknown_label_string(self):
        assert is_name_category_mismatch("Gurdwara Sahib", "Religious Organization")


# ---- labels and rules -------------------------------------------------------


class TestCategoryLabel:
    def test_parse_value_and_display_name(self):
        assert CategoryLabel.parse("cafe") is CategoryLabel.CAFE
        assert CategoryLabel.parse("Cafe/Dessert") is CategoryLabel.CAFE
        assert CategoryLabel.parse("community organization") is CategoryLabel.ORG

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            CategoryLabel.parse("pub")

    def test_worship_flag(self):
        assert CategoryLabel.MOSQUE.is_worship
        assert not CategoryLabel.ORG.is_worship

    def test_str_comparison(self):
        assert CategoryLabel.TEMPLE == "temple"


class TestCategoryRules:
    def test_project_yaml_matches_defaults(self):
        rules = CategoryRules.from_yaml(CONFIG_DIR / "category_rules.yaml")
        assert rules.religious_tags == DEFAULT_RULES.religious_tags
        assert rules.category_tiers == DEFAULT_RULES.category_tiers
        assert rules.type_tiers == DEFAULT_RULES.type_tiers
        assert classify("Guru Nanak Sikh Temple", rules=rules) is CategoryLabel.TEMPLE
        assert [label for label, _ in rules.worship_patterns] == [
            CategoryLabel.TEMPLE, CategoryLabel.GURDWARA, CategoryLabel.MOSQUE,
        ]
        assert [p.pattern for _, p in rules.worship_patterns] == [
            p.pattern for _, p in DEFAULT_RULES.worship_patterns
        ]

    def test_partial_yaml_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("religious_tags: [temples]\n", encoding="utf-8")
        rules = CategoryRules.from_yaml(path)
        assert rules.religious_tags == frozenset({"temples"})
        assert rules.category_tiers == DEFAULT_RULES.category_tiers

    def test_overlapping_tiers_rejected(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "category_tags:\n"
            "  - label: restaurant\n"
            "    tags: [bakery]\n"
            "  - label: cafe\n"
            "    tags: [bakery]\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError):
            CategoryRules.from_yaml(path)

    def test_worship_label_in_tag_tier_rejected(self):
        with pytest.raises(ValueError):
            CategoryRules.build(category_tiers=[("temple", ["hindu_temple"])])

    def test_unknown_label_rejected(self):
        with pytest.raises(ValueError):
            CategoryRules.build(type_tiers=[("pub", ["bar"])])

    def test_custom_worship_terms(self):
        rules = CategoryRules.build(worship_terms={"temple": ["devasthanam"]})
        assert classify("Sri Devasthanam", rules=rules) is CategoryLabel.TEMPLE
        assert classify("Gurdwara Sahib", rules=rules) is CategoryLabel.ORG
