#!/usr/bin/env python3
"""
Place Matching — Provider Search Fetcher

Runs keyword searches against Google Places Text Search and Yelp Fusion
business search for each Metro Vancouver city, and saves the raw results in
the provider's own envelope so normalize_provider_results.py can turn them
into candidates.

Usage:
    # Set your API keys:
    export GOOGLE_PLACES_KEY="AIza..."
    export YELP_API_KEY="..."

    # Dry run — show the query plan without making API calls:
    python agent-02-data-acquisition/scripts/fetch_provider_results.py \
        --provider google --dry-run

    # Fetch Yelp results for two cities:
    python agent-02-data-acquisition/scripts/fetch_provider_results.py \
        --provider yelp --city Surrey --city Burnaby \
        --output raw/yelp_search.json

    # Then normalise:
    python agent-02-data-acquisition/scripts/normalize_provider_results.py \
        --provider yelp --input raw/yelp_search.json

Dependencies:
    pip install requests
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

try:
    import requests
except ImportError:
    print(
        "ERROR: requests library required. Install with: pip install requests",
        file=sys.stderr,
    )
    sys.exit(1)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider configuration
# ---------------------------------------------------------------------------

GOOGLE_TEXTSEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
YELP_SEARCH_URL = "https://api.yelp.com/v3/businesses/search"

API_KEY_ENV = {"google": "GOOGLE_PLACES_KEY", "yelp": "YELP_API_KEY"}
ENVELOPE_KEYS = {"google": "results", "yelp": "businesses"}
ID_KEYS = {"google": "place_id", "yelp": "id"}

GOOGLE_TERMS = [
    "indian restaurant", "pakistani restaurant", "bangladeshi restaurant",
    "south asian restaurant", "punjabi restaurant", "afghan restaurant",
    "halal restaurant", "indian grocery", "south asian grocery",
    "indian clothing", "sari shop", "gurdwara", "sikh temple",
    "hindu temple", "mosque",
]

YELP_CATEGORIES = ["indian", "pakistani", "bangladeshi", "sri_lankan", "afghani", "halal"]

# Location bias per city (lat, lng); unknown cities fall back to Vancouver
CITY_CENTRES: dict[str, tuple[float, float]] = {
    "Vancouver": (49.2827, -123.1207),
    "Burnaby": (49.2488, -122.9805),
    "Richmond": (49.1666, -123.1336),
    "Surrey": (49.1913, -122.8490),
    "North Vancouver": (49.3181, -123.0680),
    "West Vancouver": (49.3289, -123.1645),
    "Coquitlam": (49.2838, -122.7932),
}

LOCATION_BIAS_RADIUS_M = 5_000
YELP_PAGE_LIMIT = 50

REQUEST_DELAY = 0.2


# ---------------------------------------------------------------------------
# API interaction
# ---------------------------------------------------------------------------


def _get_with_retry(
    session: requests.Session,
    url: str,
    *,
    params: dict[str, Any],
    headers: dict[str, str] | None = None,
    label: str,
) -> dict[str, Any] | None:
    """GET a JSON document, retrying on 429 / 5xx / network errors."""
    for attempt in range(3):
        try:
            resp = session.get(url, params=params, headers=headers, timeout=30)

            if resp.status_code == 200:
                return resp.json()

            if resp.status_code == 429:
                wait = 10 * (attempt + 1)
                logger.warning("Rate limited (429) on %s. Waiting %ds...", label, wait)
                time.sleep(wait)
                continue

            if resp.status_code in (400, 404):
                logger.warning("HTTP %d on %s: %s", resp.status_code, label, resp.text[:200])
                return None

            if resp.status_code in (401, 403):
                logger.error(
                    "API key rejected (%d). Response: %s",
                    resp.status_code, resp.text[:300],
                )
                sys.exit(1)

            logger.warning("HTTP %d on %s. Retrying...", resp.status_code, label)
            time.sleep(5 * (attempt + 1))

        except requests.exceptions.Timeout:
            logger.warning("Timeout on %s (attempt %d/3)", label, attempt + 1)
            time.sleep(5)
        except requests.exceptions.RequestException as e:
            logger.warning("Request error on %s: %s", label, e)
            time.sleep(5)

    logger.error("All attempts failed for %s. Skipping.", label)
    return None


def search_google(
    session: requests.Session,
    api_key: str,
    term: str,
    city: str,
) -> list[dict[str, Any]]:
    """One Text Search request, biased to a circle around the city centre."""
    lat, lng = CITY_CENTRES.get(city, CITY_CENTRES["Vancouver"])
    params = {
        "query": f"{term} in {city}",
        "key": api_key,
        "region": "ca",
        "locationbias": f"circle:{LOCATION_BIAS_RADIUS_M}@{lat},{lng}",
    }
    data = _get_with_retry(
        session, GOOGLE_TEXTSEARCH_URL, params=params, label=f"google '{term}' / {city}",
    )
    if not data:
        return []
    if data.get("error_message"):
        logger.warning("Google error for '%s' / %s: %s", term, city, data["error_message"])
        return []
    return data.get("results", [])


def search_yelp(
    session: requests.Session,
    api_key: str,
    category: str,
    city: str,
) -> list[dict[str, Any]]:
    """One business search request for a category in a city."""
    params = {
        "term": category,
        "location": f"{city}, BC",
        "limit": YELP_PAGE_LIMIT,
    }
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Accept": "application/json",
    }
    data = _get_with_retry(
        session, YELP_SEARCH_URL, params=params, headers=headers,
        label=f"yelp '{category}' / {city}",
    )
    if not data:
        return []
    if data.get("error"):
        logger.warning(
            "Yelp error for '%s' / %s: %s",
            category, city, data["error"].get("description"),
        )
        return []
    return data.get("businesses", [])


# ---------------------------------------------------------------------------
# Query plan
# ---------------------------------------------------------------------------


def build_queries(provider: str, cities: list[str], terms: list[str] | None = None) -> list[tuple[str, str]]:
    """(term, city) pairs in fetch order."""
    if terms is None:
        terms = GOOGLE_TERMS if provider == "google" else YELP_CATEGORIES
    return [(term, city) for city in cities for term in terms]


def save_output(
    output_path: str,
    provider: str,
    results: list[dict[str, Any]],
    query_ts: str,
    queries: int,
) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "_metadata": {
            "provider": provider,
            "query_timestamp": query_ts,
            "queries": queries,
            "result_count": len(results),
        },
        ENVELOPE_KEYS[provider]: results,
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch raw place search results from Google Places or Yelp",
    )
    parser.add_argument("--provider", required=True, choices=sorted(API_KEY_ENV))
    parser.add_argument(
        "--city",
        action="append",
        default=None,
        help="City to search (repeatable). Default: every city with a location bias.",
    )
    parser.add_argument(
        "--term",
        action="append",
        default=None,
        help="Search term (repeatable). Default: the provider's built-in list.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output JSON file path (default: raw/<provider>_search_<timestamp>.json)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the query plan without making API calls.",
    )
    return parser.parse_args()


def main():
    args = parse_args()

    cities = args.city or list(CITY_CENTRES)
    queries = build_queries(args.provider, cities, args.term)

    if args.dry_run:
        print(f"\n{'='*60}")
        print(f"PROVIDER SEARCH — DRY RUN ({args.provider})")
        print(f"{'='*60}")
        print(f"  Cities      : {', '.join(cities)}")
        print(f"  Terms       : {len({t for t, _ in queries})}")
        print(f"  API calls   : {len(queries):,}")
        print(f"  Est. time   : {len(queries) * REQUEST_DELAY / 60:.1f} minutes (excluding latency)")
        print(f"{'='*60}\n")
        return

    env_var = API_KEY_ENV[args.provider]
    api_key = os.environ.get(env_var)
    if not api_key:
        print(f"ERROR: Set {env_var} environment variable.", file=sys.stderr)
        sys.exit(1)

    search = search_google if args.provider == "google" else search_yelp
    id_key = ID_KEYS[args.provider]

    session = requests.Session()
    query_ts = datetime.now(timezone.utc).isoformat()
    seen_ids: set[str] = set()
    results: list[dict[str, Any]] = []
    duplicates = 0

    try:
        for i, (term, city) in enumerate(queries):
            time.sleep(REQUEST_DELAY)
            for item in search(session, api_key, term, city):
                pid = item.get(id_key)
                if pid and pid in seen_ids:
                    duplicates += 1
                    continue
                if pid:
                    seen_ids.add(pid)
                results.append(item)

            if (i + 1) % 10 == 0:
                logger.info(
                    "Progress: %d/%d queries — %d results, %d duplicates skipped",
                    i + 1, len(queries), len(results), duplicates,
                )
    except KeyboardInterrupt:
        logger.warning("Interrupted! Saving what was fetched...")

    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    output = args.output or f"raw/{args.provider}_search_{ts}.json"
    save_output(output, args.provider, results, query_ts, len(queries))

    logger.info("=" * 60)
    logger.info("PROVIDER SEARCH SUMMARY")
    logger.info("  Provider   : %s", args.provider)
    logger.info("  Queries    : %d", len(queries))
    logger.info("  Results    : %d", len(results))
    logger.info("  Duplicates : %d", duplicates)
    logger.info("  Output     : %s", output)
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
