#!/usr/bin/env python3
"""
Place Matching — Candidate vs. Canonical Directory

Loads normalised provider candidates and the canonical place directory,
compares every candidate with the canonical records near it, and writes
match reports. The canonical directory itself is never modified; the
ingestion workflow decides what to merge or insert from the reports.

Strategy:
    1. Load candidates and canonical records (flat PlaceRecord JSON)
    2. Drop candidates outside the service area (region validator)
    3. For each candidate, pre-filter canonicals by proximity; candidates
       without coordinates are compared with every canonical record
    4. Score pairs concurrently with the composite scorer
    5. Keep each candidate's best match and bucket it by decision

Usage:
    python agent-03-place-matching/scripts/match_places.py \
        --candidates output/candidates/candidates_google.json \
        --canonical output/canonical/places.json \
        --output-dir output/matches/

Dependencies:
    pip install rapidfuzz pyyaml
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from collections import defaultdict
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(ROOT))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Import bootstrapping for hyphenated directory
# ---------------------------------------------------------------------------

def _bootstrap_imports():
    """Register the hyphenated agent directory as an importable module."""
    import importlib.util

    alias = "agent_03_place_matching"
    if alias in sys.modules:
        return

    pkg_path = ROOT / "agent-03-place-matching"
    alg_path = pkg_path / "algorithms"

    spec = importlib.util.spec_from_file_location(
        alias,
        alg_path / "__init__.py",
        submodule_search_locations=[str(pkg_path)],
    )
    mod = importlib.util.module_from_spec(spec)
    sys.modules[alias] = mod

    alg_spec = importlib.util.spec_from_file_location(
        f"{alias}.algorithms",
        alg_path / "__init__.py",
        submodule_search_locations=[str(alg_path)],
    )
    alg_mod = importlib.util.module_from_spec(alg_spec)
    sys.modules[f"{alias}.algorithms"] = alg_mod
    alg_spec.loader.exec_module(alg_mod)


_bootstrap_imports()

from agent_03_place_matching.algorithms.composite_scorer import (  # noqa: E402
    MatchResult,
    ScorerConfig,
    score_candidate_pairs,
)
from agent_03_place_matching.algorithms.geo_proximity import (  # noqa: E402
    find_nearby_candidates,
)
from agent_03_place_matching.algorithms.place_record import PlaceRecord  # noqa: E402
from agent_03_place_matching.algorithms.region_validator import (  # noqa: E402
    RegionBounds,
    validate_region,
)

CONFIG_DIR = ROOT / "agent-03-place-matching" / "config"


# ---------------------------------------------------------------------------
# Data loading
# ---------------------------------------------------------------------------


def load_records(path: str | Path) -> list[PlaceRecord]:
    """Load a JSON list of flat place records, skipping unusable entries."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Record file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Expected a JSON list of records in {path}")

    records = []
    for i, item in enumerate(raw):
        try:
            record = PlaceRecord.from_dict(item)
        except TypeError as e:
            logger.warning("Skipping record %d in %s: %s", i, path.name, e)
            continue
        if not record.place_id:
            record = replace(record, place_id=f"{path.stem}:{i}")
        records.append(record)
    logger.info("Loaded %d records from %s", len(records), path)
    return records


# ---------------------------------------------------------------------------
# Candidate pair generation
# ---------------------------------------------------------------------------


def build_pairs(
    candidates: list[PlaceRecord],
    canonicals: list[PlaceRecord],
    search_radius_m: float,
) -> list[tuple[PlaceRecord, PlaceRecord]]:
    """
    Pair each candidate with the canonical records worth scoring.

    Candidates with valid coordinates only see canonicals within
    search_radius_m. Candidates without coordinates see every canonical.
    """
    pairs: list[tuple[PlaceRecord, PlaceRecord]] = []
    for cand in candidates:
        if cand.has_valid_coordinates:
            nearby = find_nearby_candidates(cand.coordinates, canonicals, search_radius_m)
            pairs.extend((cand, canon) for canon, _ in nearby)
        else:
            pairs.extend((cand, canon) for canon in canonicals)
    return pairs


def reduce_best(results: list[MatchResult]) -> dict[str, MatchResult]:
    """Keep the highest-confidence result per candidate."""
    best: dict[str, MatchResult] = {}
    for r in results:
        key = r.candidate_id
        if key not in best or r.match_confidence > best[key].match_confidence:
            best[key] = r
    return best


# ---------------------------------------------------------------------------
# Main pipeline
# ---------------------------------------------------------------------------


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Match provider candidates against the canonical place directory",
    )
    parser.add_argument("--candidates", required=True, help="Candidate records JSON")
    parser.add_argument("--canonical", required=True, help="Canonical records JSON")
    parser.add_argument(
        "--output-dir",
        default="output/matches",
        help="Directory for match reports (default: output/matches/)",
    )
    parser.add_argument(
        "--search-radius",
        type=float,
        default=500.0,
        help="Proximity pre-filter radius in metres (default: 500)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to match_rules.yaml (default: auto-detected)",
    )
    parser.add_argument(
        "--region",
        default=None,
        help="Path to region_bounds.yaml (default: auto-detected)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=os.cpu_count() or 1,
        help="Scoring workers (default: CPU count). Threads share one core for "
             "this CPU-bound work; add --processes to use every core.",
    )
    parser.add_argument(
        "--processes",
        action="store_true",
        help="Score in worker processes instead of threads.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show candidate pair counts without running the scorer.",
    )
    return parser.parse_args()


def main():
    args = parse_args()

    config_path = args.config or str(CONFIG_DIR / "match_rules.yaml")
    config = ScorerConfig.from_yaml(config_path)
    logger.info("Loaded scorer config from %s", config_path)

    region_path = args.region or str(CONFIG_DIR / "region_bounds.yaml")
    bounds = RegionBounds.from_yaml(region_path)
    logger.info("Loaded region bounds from %s", region_path)

    try:
        candidates = load_records(args.candidates)
        canonicals = load_records(args.canonical)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)

    if not candidates:
        logger.error("No candidate records found. Exiting.")
        sys.exit(1)

    # Region gate
    eligible: list[PlaceRecord] = []
    rejections: dict[str, int] = defaultdict(int)
    for cand in candidates:
        check = validate_region(cand, bounds)
        if check.accepted:
            eligible.append(cand)
        else:
            for reason in check.reasons:
                rejections[reason] += 1
    logger.info("Eligible candidates: %d of %d", len(eligible), len(candidates))
    for reason, count in sorted(rejections.items()):
        logger.info("  %-20s %d", reason, count)

    pairs = build_pairs(eligible, canonicals, args.search_radius)
    logger.info("Candidate pairs: %d (radius: %.0f m)", len(pairs), args.search_radius)

    if args.dry_run:
        print(f"\nDRY RUN: {len(pairs)} candidate pairs found. "
              f"Use without --dry-run to score them.")
        return

    logger.info(
        "Scoring %d pairs with %d %s...",
        len(pairs), args.workers, "processes" if args.processes else "threads",
    )
    t0 = time.time()
    results = score_candidate_pairs(
        pairs, config, max_workers=args.workers, processes=args.processes,
    )
    logger.info("Scoring complete in %.1fs", time.time() - t0)

    best = reduce_best(results)

    auto_merges: list[dict[str, Any]] = []
    reviews: list[dict[str, Any]] = []
    new_records: list[dict[str, Any]] = []
    for cand in eligible:
        match = best.get(cand.place_id)
        if match is None or match.decision == "no_match":
            new_records.append(cand.to_dict())
        elif match.decision == "auto_merge":
            auto_merges.append(match.to_dict())
        else:
            reviews.append(match.to_dict())

    logger.info("  Auto-merge : %d", len(auto_merges))
    logger.info("  Review     : %d", len(reviews))
    logger.info("  New record : %d", len(new_records))

    write_output(auto_merges, reviews, new_records, args.output_dir)


def write_output(
    auto_merges: list[dict],
    reviews: list[dict],
    new_records: list[dict],
    output_dir: str,
) -> None:
    """Write match reports and a summary."""
    out_path = Path(output_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    reports = {
        f"auto_merges_{ts}.json": auto_merges,
        f"review_queue_{ts}.json": reviews,
        f"new_records_{ts}.json": new_records,
    }
    for filename, rows in reports.items():
        if not rows:
            continue
        with open(out_path / filename, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
        logger.info("Wrote %d rows to %s", len(rows), out_path / filename)

    summary = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "auto_merges": len(auto_merges),
        "review_queue": len(reviews),
        "new_records": len(new_records),
    }
    summary_path = out_path / f"match_summary_{ts}.json"
    with open(summary_path, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, ensure_ascii=False)
    logger.info("Wrote summary to %s", summary_path)


if __name__ == "__main__":
    main()
