#!/usr/bin/env python3
"""
Place Matching — Provider Result Normalisation

Converts a raw provider search dump (Yelp business search or Google Places
text search, saved as JSON) into flat PlaceRecord candidates:

    1. Parse each provider result into a PlaceRecord
    2. Drop results outside the service area (region validator)
    3. Attach a category label (category classifier)
    4. Write candidates + a rejection summary

Usage:
    python agent-02-data-acquisition/scripts/normalize_provider_results.py \
        --provider google \
        --input raw/google_textsearch_vancouver.json \
        --output-dir output/candidates/

Input may be a JSON list of results, or the provider's envelope
({"businesses": [...]} for Yelp, {"results": [...]} for Google).
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
    classify_record,
)
from agent_03_place_matching.algorithms.place_record import PlaceRecord  # noqa: E402
from agent_03_place_matching.algorithms.region_validator import (  # noqa: E402
    RegionBounds,
    validate_region,
)

CONFIG_DIR = ROOT / "agent-03-place-matching" / "config"

_ENVELOPE_KEYS = {"yelp": "businesses", "google": "results"}


def read_provider_dump(path: Path, provider: str) -> list[dict[str, Any]]:
    """Read raw provider results from a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Provider dump not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get(_ENVELOPE_KEYS[provider], [])
    if not isinstance(raw, list):
        raise ValueError(f"Unexpected JSON structure in {path}")
    logger.info("Read %d %s results from %s", len(raw), provider, path)
    return raw


def to_place_record(result: dict[str, Any], provider: str) -> PlaceRecord:
    if provider == "yelp":
        return PlaceRecord.from_yelp_business(result)
    return PlaceRecord.from_google_place(result)


def process_results(
    results: list[dict[str, Any]],
    provider: str,
    bounds: RegionBounds,
    rules: CategoryRules,
) -> tuple[list[dict[str, Any]], Counter]:
    """Normalise, gate, and classify provider results."""
    accepted: list[dict[str, Any]] = []
    rejected: Counter = Counter()

    for i, result in enumerate(results):
        try:
            record = to_place_record(result, provider)
        except TypeError as e:
            logger.warning("Result %d: malformed payload: %s", i, e)
            rejected["malformed_payload"] += 1
            continue

        if not record.name.strip():
            rejected["missing_name"] += 1
            continue

        check = validate_region(record, bounds)
        if not check.accepted:
            for reason in check.reasons:
                rejected[reason] += 1
            continue

        row = record.to_dict()
        row["category"] = classify_record(record, rules).value
        accepted.append(row)

    return accepted, rejected


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Normalise raw provider search results into place candidates",
    )
    parser.add_argument("--provider", required=True, choices=sorted(_ENVELOPE_KEYS))
    parser.add_argument("--input", required=True, help="Raw provider JSON dump")
    parser.add_argument(
        "--output-dir",
        default="output/candidates",
        help="Directory for candidate output (default: output/candidates/)",
    )
    parser.add_argument("--region", default=None, help="Path to region_bounds.yaml")
    parser.add_argument("--rules", default=None, help="Path to category_rules.yaml")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    bounds = RegionBounds.from_yaml(args.region or CONFIG_DIR / "region_bounds.yaml")
    rules = CategoryRules.from_yaml(args.rules or CONFIG_DIR / "category_rules.yaml")

    try:
        results = read_provider_dump(Path(args.input), args.provider)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)

    if not results:
        logger.warning("No results found in provider dump. Exiting.")
        return

    accepted, rejected = process_results(results, args.provider, bounds, rules)
    by_category = Counter(row["category"] for row in accepted)

    logger.info("=" * 60)
    logger.info("PROVIDER NORMALISATION SUMMARY")
    logger.info("  Provider    : %s", args.provider)
    logger.info("  Total input : %d", len(results))
    logger.info("  Accepted    : %d", len(accepted))
    logger.info("  Rejected    : %d", sum(rejected.values()))
    for reason, count in sorted(rejected.items()):
        logger.info("    %-18s %d", reason, count)
    logger.info("  By category :")
    for label, count in by_category.most_common():
        logger.info("    %-18s %d", label, count)
    logger.info("=" * 60)

    out_path = Path(args.output_dir)
    out_path.mkdir(parents=True, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    out_file = out_path / f"candidates_{args.provider}_{ts}.json"
    with open(out_file, "w", encoding="utf-8") as f:
        json.dump(accepted, f, indent=2, ensure_ascii=False)
    logger.info("Wrote %d candidates to %s", len(accepted), out_file)


if __name__ == "__main__":
    main()
