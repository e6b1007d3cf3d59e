#!/usr/bin/env python3
"""
Place Matching Engine — End-to-End Demo

Runs the full pipeline on sample data:
  1. Gate: region validator over provider candidates
  2. Classify: category label per accepted candidate
  3. Match: best canonical match per candidate, bucketed by decision
  4. Sweep: worship-name consistency check over the canonical directory

Usage:
    python sample-data/run_demo.py
"""

from __future__ import annotations

import importlib.util
import json
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Bootstrap imports for hyphenated directories
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parent.parent

alg_path = ROOT / "agent-03-place-matching" / "algorithms"

# Register the package so relative imports between modules work
parent_spec = importlib.util.spec_from_file_location(
    "algorithms",
    alg_path / "__init__.py",
    submodule_search_locations=[str(alg_path)],
)
engine = importlib.util.module_from_spec(parent_spec)
sys.modules["algorithms"] = engine
parent_spec.loader.exec_module(engine)

CONFIG_DIR = ROOT / "agent-03-place-matching" / "config"


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def load(path: Path) -> list[dict]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def step_gate(candidates: list, bounds) -> list:
    """Drop candidates outside the service area."""
    print("=" * 65)
    print("STEP 1: REGION GATE")
    print("=" * 65)

    accepted = []
    for cand in candidates:
        check = engine.validate_region(cand, bounds)
        if check.accepted:
            accepted.append(cand)
        else:
            print(f"  rejected  {cand.name}  ({', '.join(check.reasons)})")

    print(f"  Candidates : {len(candidates)}")
    print(f"  Accepted   : {len(accepted)}")
    print()
    return accepted


def step_classify(candidates: list, rules) -> None:
    print("=" * 65)
    print("STEP 2: CLASSIFICATION")
    print("=" * 65)

    for cand in candidates:
        label = engine.classify_record(cand, rules)
        print(f"  {label.display_name:<24} {cand.name}")
    print()


def step_match(candidates: list, canonicals: list, config) -> None:
    print("=" * 65)
    print("STEP 3: MATCHING")
    print("=" * 65)

    name_lookup = {c.place_id: c.name for c in canonicals}

    for cand in candidates:
        best = engine.best_match(cand, canonicals, config)
        if best is None:
            print(f"  no canonical records to compare with {cand.name}")
            continue

        canon_name = name_lookup.get(best.canonical_id, "?")
        dist = f"{best.distance_m:.0f}m" if best.distance_m is not None else "n/a"
        print(f"  {best.match_confidence:.2f}  {best.decision:<10} {cand.name}")
        print(f"                    vs  {canon_name}")
        print(
            f"                    [name={best.name_score:.2f}, "
            f"address={best.address_score:.2f}, "
            f"distance={best.distance_score:.2f} ({dist})]"
        )
        print()


def step_sweep(canonical_rows: list[dict], rules) -> None:
    print("=" * 65)
    print("STEP 4: WORSHIP NAME SWEEP")
    print("=" * 65)

    flagged = 0
    for row in canonical_rows:
        if engine.is_name_category_mismatch(row["name"], row.get("category", ""), rules):
            flagged += 1
            suggested = engine.correct_worship_category(row["name"], rules)
            print(f"  {row['name']}: {row.get('category')} -> {suggested.value}")

    print(f"  SUMMARY: {flagged} of {len(canonical_rows)} canonical records flagged")
    print("=" * 65)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main():
    candidates_path = ROOT / "sample-data" / "vancouver_candidates.json"
    canonical_path = ROOT / "sample-data" / "vancouver_canonical.json"

    for path in (candidates_path, canonical_path):
        if not path.exists():
            print(f"Sample data not found: {path}")
            sys.exit(1)

    config = engine.ScorerConfig.from_yaml(CONFIG_DIR / "match_rules.yaml")
    bounds = engine.RegionBounds.from_yaml(CONFIG_DIR / "region_bounds.yaml")
    rules = engine.CategoryRules.from_yaml(CONFIG_DIR / "category_rules.yaml")

    canonical_rows = load(canonical_path)
    canonicals = [engine.PlaceRecord.from_dict(r) for r in canonical_rows]
    candidates = [engine.PlaceRecord.from_dict(r) for r in load(candidates_path)]

    print()
    print("  Place Matching Engine — End-to-End Demo")
    print()

    accepted = step_gate(candidates, bounds)
    step_classify(accepted, rules)
    step_match(accepted, canonicals, config)
    step_sweep(canonical_rows, rules)


if __name__ == "__main__":
    main()
