"""CLI entrypoint for the Arduino library registry generator."""

from __future__ import annotations

import argparse
import functools
import logging
import os
import sys

from dotenv import load_dotenv

from enrichment import CONCURRENT_REQUESTS, enrich_packages
from filters import rank_packages
from github_client import build_headers, fetch_repo_metadata
from library_index import LIBRARY_INDEX_URL, fetch_library_index, group_libraries
from models import Registry
from registry_sink import build_registry, write_registry


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Build the enriched Arduino library registry")
    parser.add_argument(
        "--output",
        default=None,
        help="Registry JSON path (default: REGISTRY_OUTPUT_PATH or registry.json)",
    )
    parser.add_argument("--index-url", default=LIBRARY_INDEX_URL, help="Library index URL to ingest")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=CONCURRENT_REQUESTS,
        help="GitHub lookups issued concurrently per batch",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run every stage but do not write the registry file",
    )
    return parser.parse_args(argv)


def run(
    index_url: str = LIBRARY_INDEX_URL,
    output: str | None = None,
    concurrency: int = CONCURRENT_REQUESTS,
    dry_run: bool = False,
) -> Registry:
    """Run one generation cycle and return the assembled registry."""
    logging.info("Starting registry generation...")

    token = os.getenv("GITHUB_TOKEN")
    if not token:
        logging.warning("GITHUB_TOKEN is not set. You may hit rate limits quickly.")

    entries = fetch_library_index(index_url)
    packages = group_libraries(entries)

    fetch = functools.partial(fetch_repo_metadata, headers=build_headers(token))
    enriched = enrich_packages(list(packages.values()), fetch=fetch, batch_size=concurrency)

    logging.info("Filtering and sorting the final registry...")
    ranked = rank_packages(enriched)
    logging.info(
        "Final registry contains %s active libraries (dropped=%s)",
        len(ranked),
        len(enriched) - len(ranked),
    )

    registry = build_registry(ranked)
    if dry_run:
        logging.info("[dry-run] Would write %s libraries", registry.total_libraries)
        return registry

    write_registry(registry, output)
    return registry


def main(argv: list[str] | None = None) -> int:
    """Initialize config, execute the pipeline and return the exit code."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)

    try:
        run(
            index_url=args.index_url,
            output=args.output,
            concurrency=args.concurrency,
            dry_run=args.dry_run,
        )
    except Exception as exc:
        logging.exception("FATAL: Registry generation failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
