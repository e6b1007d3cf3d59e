"""Tests for agent-03-place-matching — worship sweep script."""

import importlib.util
import sys
from pathlib import Path

import pytest

from agent_03_place_matching.algorithms.category_classifier import DEFAULT_RULES

ROOT = Path(__file__).resolve().parent.parent
SWEEP_PATH = ROOT / "agent-03-place-matching" / "scripts" / "worship_sweep.py"


@pytest.fixture(scope="module")
def sweep():
    spec = importlib.util.spec_from_file_location("worship_sweep", SWEEP_PATH)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


class TestPackageAlias:
    def test_alias_points_at_engine_directory(self):
        pkg = sys.modules["agent_03_place_matching"]
        assert list(pkg.__path__) == [str(ROOT / "agent-03-place-matching")]
        assert "agent_03_place_matching.algorithms" in sys.modules


class TestSweepScript:
    def test_loads_without_matcher_on_path(self, sweep):
        assert "match_places" not in sys.modules
        assert sweep.CONFIG_DIR == ROOT / "agent-03-place-matching" / "config"
        assert (sweep.CONFIG_DIR / "category_rules.yaml").exists()

    def test_find_mismatches(self, sweep):
        records = [
            {"place_id": "p1", "name": "Ram Mandir", "category": "restaurant"},
            {"place_id": "p2", "name": "Sikh Temple", "category": "gurdwara"},
            {"place_id": "p3", "name": "Tandoori Flame", "category": "restaurant"},
        ]
        flagged = sweep.find_mismatches(records, DEFAULT_RULES)
        assert flagged == [{
            "place_id": "p1",
            "name": "Ram Mandir",
            "current_category": "restaurant",
            "suggested_category": "temple",
        }]

    def test_count_duplicate_keys(self, sweep):
        records = [
            {"name": "Ram Mandir", "address": "8280 128 Street"},
            {"name": "ram mandir", "address": "8280 128 Street"},
            {"name": "Ram Mandir", "address": "8280 128 Street", "status": "merged"},
        ]
        assert sweep.count_duplicate_keys(records) == 1
