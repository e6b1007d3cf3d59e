#!/usr/bin/env python3
"""
Place Matching — Worship Name Consistency Sweep

Periodic data-quality pass over the canonical directory. Flags places whose
name implies a worship category (temple, gurdwara, mosque) that their stored
category does not carry, and counts records sharing the same normalised
name + address key.

The sweep only reports; corrections are applied by the directory's owners.

Usage:
    python agent-03-place-matching/scripts/worship_sweep.py \
        --canonical output/canonical/places.json \
        --output-dir output/sweeps/
"""

from __future__ import annotations

import argparse
import importlib.util
import json
import logging
import sys
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent.parent
CONFIG_DIR = ROOT / "agent-03-place-matching" / "config"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Bootstrap imports for hyphenated directories
# ---------------------------------------------------------------------------

_ALIAS = "agent_03_place_matching"
if _ALIAS not in sys.modules:
    _pkg_path = ROOT / "agent-03-place-matching"
    _alg_path = _pkg_path / "algorithms"
    _spec = importlib.util.spec_from_file_location(
        _ALIAS, _alg_path / "__init__.py", submodule_search_locations=[str(_pkg_path)],
    )
    sys.modules[_ALIAS] = importlib.util.module_from_spec(_spec)
    _alg_spec = importlib.util.spec_from_file_location(
        f"{_ALIAS}.algorithms", _alg_path / "__init__.py",
        submodule_search_locations=[str(_alg_path)],
    )
    _alg_mod = importlib.util.module_from_spec(_alg_spec)
    sys.modules[f"{_ALIAS}.algorithms"] = _alg_mod
    _alg_spec.loader.exec_module(_alg_mod)

from agent_03_place_matching.algorithms.category_classifier import (  # noqa: E402
    CategoryRules,
    correct_worship_category,
    is_name_category_mismatch,
)
from agent_03_place_matching.algorithms.string_similarity import canonical_key  # noqa: E402


def find_mismatches(
    records: list[dict[str, Any]],
    rules: CategoryRules,
    category_key: str = "category",
) -> list[dict[str, Any]]:
    """Records whose worship-implying name disagrees with their category."""
    flagged = []
    for rec in records:
        name = rec.get("name") or ""
        current = rec.get(category_key) or ""
        if not name or not is_name_category_mismatch(name, current, rules):
            continue
        suggested = correct_worship_category(name, rules)
        flagged.append({
            "place_id": rec.get("place_id"),
            "name": name,
            "current_category": current,
            "suggested_category": suggested.value if suggested else None,
        })
    return flagged


def count_duplicate_keys(records: list[dict[str, Any]]) -> int:
    """Number of records whose canonical key was already seen."""
    keys = Counter(
        canonical_key(r.get("name"), r.get("address"))
        for r in records
        if r.get("status") != "merged"
    )
    return sum(n - 1 for n in keys.values() if n > 1)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Flag canonical places whose name implies a different worship category",
    )
    parser.add_argument("--canonical", required=True, help="Canonical records JSON")
    parser.add_argument(
        "--output-dir",
        default="output/sweeps",
        help="Directory for the sweep report (default: output/sweeps/)",
    )
    parser.add_argument(
        "--rules",
        default=None,
        help="Path to category_rules.yaml (default: auto-detected)",
    )
    parser.add_argument(
        "--category-key",
        default="category",
        help="Field holding the stored category label (default: category)",
    )
    return parser.parse_args()


def main():
    args = parse_args()

    rules_path = args.rules or str(CONFIG_DIR / "category_rules.yaml")
    rules = CategoryRules.from_yaml(rules_path)
    logger.info("Loaded category rules from %s", rules_path)

    canonical_path = Path(args.canonical)
    if not canonical_path.exists():
        logger.error("Canonical file not found: %s", canonical_path)
        sys.exit(1)
    with canonical_path.open("r", encoding="utf-8") as f:
        records = json.load(f)
    logger.info("Loaded %d canonical records", len(records))

    flagged = find_mismatches(records, rules, args.category_key)
    duplicates = count_duplicate_keys(records)

    by_suggestion = Counter(f["suggested_category"] for f in flagged)

    logger.info("=" * 60)
    logger.info("WORSHIP SWEEP SUMMARY")
    logger.info("  Records scanned      : %d", len(records))
    logger.info("  Misclassified        : %d", len(flagged))
    for label, count in sorted(by_suggestion.items()):
        logger.info("    → %-18s %d", label, count)
    logger.info("  Duplicate keys       : %d", duplicates)
    logger.info("=" * 60)

    out_path = Path(args.output_dir)
    out_path.mkdir(parents=True, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    report_path = out_path / f"worship_sweep_{ts}.json"
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "records_scanned": len(records),
                "duplicate_keys": duplicates,
                "misclassified": flagged,
            },
            f,
            indent=2,
            ensure_ascii=False,
        )
    logger.info("Wrote report to %s", report_path)


if __name__ == "__main__":
    main()
