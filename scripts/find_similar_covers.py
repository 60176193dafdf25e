#!/usr/bin/env python3
"""
CoverScout - Find covers similar to a local image.

Usage:
    python scripts/find_similar_covers.py path/to/Dune_copy.jpg --top-n 5

Requires ISBNDB_API_KEY in the environment or a .env file.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load env vars
load_dotenv()

from coverscout.api.dependencies import Settings, ServiceContainer
from coverscout.cancellation import SearchCancelledError
from coverscout.catalog.isbndb import CatalogConfigurationError
from coverscout.similarity.phash import HashComputationError


def parse_args(argv=None) -> argparse.Namespace:
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Find book covers similar to an image")
    parser.add_argument("image", type=Path, help="Path to the query image")
    parser.add_argument("--name", default=None, help="Image name used for title search (default: file name)")
    parser.add_argument("--query", default=settings.default_fallback_query, help="Generic fallback query")
    parser.add_argument("--max-results", type=int, default=settings.default_max_results)
    parser.add_argument("--threshold", type=float, default=settings.default_similarity_threshold)
    parser.add_argument("--top-n", type=int, default=settings.default_top_n)
    parser.add_argument("--translate", action="store_true", help="Add machine-translated title variations")
    parser.add_argument("--concurrency", type=int, default=settings.search_concurrency)
    parser.add_argument("--json", action="store_true", help="Print the raw result as JSON")
    return parser.parse_args(argv)


def print_progress(current: int, total: int, title: str) -> None:
    print(f"  [{current}/{total}] {title}", file=sys.stderr)


async def run(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    settings.translation_enabled = settings.translation_enabled or args.translate
    settings.search_concurrency = max(1, args.concurrency)

    services = ServiceContainer(settings)
    pipeline = services.pipeline

    try:
        result = await pipeline.find_similar_covers(
            image_bytes=args.image.read_bytes(),
            image_name=args.name if args.name is not None else args.image.name,
            fallback_query=args.query,
            max_results=args.max_results,
            similarity_threshold=args.threshold,
            top_n=args.top_n,
            on_progress=print_progress,
        )
    except (CatalogConfigurationError, HashComputationError, SearchCancelledError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await services.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"Target hash:   {result.target_hash}")
    print(f"Search method: {result.search_method.value} ('{result.search_query}')")
    print(f"Compared:      {result.total_compared}")
    print("-" * 40)

    if not result.matches:
        print("No similar covers found")
        return 0

    for rank, match in enumerate(result.matches, 1):
        book = match.candidate
        authors = ", ".join(book.authors) or "Unknown"
        marker = " [title match]" if match.matched_by_title else ""
        print(f"{rank:2d}. {match.similarity:6.2f}%  {book.title} by {authors}{marker}")
        print(f"    ISBN {book.identifier or '-'}  {book.cover_url}")

    return 0


def main() -> int:
    args = parse_args()
    if not args.image.is_file():
        print(f"Error: {args.image} is not a file", file=sys.stderr)
        return 2
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
