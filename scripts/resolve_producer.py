"""Resolve producer names from the command line.

Usage:
    python scripts/resolve_producer.py "Glenfidich" "ben nevis distillery ltd"
    python scripts/resolve_producer.py --kind bottler "Gordon and Macphail"
    python scripts/resolve_producer.py --seed --json "Lagavulin"

Options:
    --kind      distiller (default) or bottler
    --db        Catalogue database path (default: PRODUCER_DB_PATH)
    --seed      Create tables and seed the sample catalogue first
    --json      Print resolutions as JSON instead of explanations
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import get_settings
from core.observability.logging import with_correlation
from producer_resolver import (
    ProducerKind,
    explain_resolution,
    init_producer_db,
    seed_sample_producers,
)
from producer_resolver.service import get_resolver


async def resolve_all(kind: ProducerKind, names: list, db_path: Path, as_json: bool) -> int:
    """Resolve each name and print the result.

    Returns:
        Number of names left unresolved
    """
    resolver = get_resolver(db_path)
    unresolved = 0
    results = []

    for name in names:
        with with_correlation(producer_kind=kind.value, stage="cli"):
            resolution, ranked = await resolver.resolve_with_ranking(kind, name)

        if not resolution.is_resolved:
            unresolved += 1

        if as_json:
            results.append(resolution.model_dump(by_alias=True, mode="json"))
        else:
            print(explain_resolution(resolution, ranked))
            print()

    if as_json:
        print(json.dumps(results, indent=2, ensure_ascii=False))

    return unresolved


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve distiller/bottler names against the catalogue")
    parser.add_argument("names", nargs="+", help="Raw producer names to resolve")
    parser.add_argument(
        "--kind",
        choices=[k.value for k in ProducerKind],
        default=ProducerKind.DISTILLER.value,
        help="Producer kind (default: distiller)",
    )
    parser.add_argument("--db", type=Path, default=None, help="Catalogue database path")
    parser.add_argument("--seed", action="store_true", help="Seed the sample catalogue first")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    args = parser.parse_args()

    if args.json:
        # Keep stdout clean for the JSON document
        logging.disable(logging.INFO)

    db_path = args.db or get_settings().producer_db_path

    if args.seed:
        created = seed_sample_producers(db_path)
        if not args.json:
            print(f"Seeded catalogue: {created}")
            print()
    else:
        init_producer_db(db_path)

    unresolved = asyncio.run(resolve_all(ProducerKind(args.kind), args.names, db_path, args.json))
    return 1 if unresolved else 0


if __name__ == "__main__":
    sys.exit(main())
