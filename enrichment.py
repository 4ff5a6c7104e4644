"""Batched, concurrent GitHub enrichment of grouped packages."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from github_client import fetch_repo_metadata
from models import Package, RepoIdentity, RepoMetadata

CONCURRENT_REQUESTS = int(os.getenv("CONCURRENT_REQUESTS", "5"))
PROGRESS_LOG_EVERY = int(os.getenv("PROGRESS_LOG_EVERY", "50"))

LOGGER = logging.getLogger(__name__)

Fetcher = Callable[[RepoIdentity], RepoMetadata | None]


def enrich_packages(
    packages: Sequence[Package],
    *,
    fetch: Fetcher = fetch_repo_metadata,
    batch_size: int = CONCURRENT_REQUESTS,
    progress_every: int = PROGRESS_LOG_EVERY,
) -> list[Package]:
    """Enrich packages in place with GitHub metadata and return them in order.

    Packages are processed in fixed-size batches: every lookup of a batch runs
    concurrently and the next batch starts only once all of them settled, so
    at most ``batch_size`` requests are in flight. A failed lookup leaves its
    package unenriched without affecting the rest of the batch.
    """
    batch_size = max(1, batch_size)
    progress_every = max(1, progress_every)
    total = len(packages)
    enriched = 0

    LOGGER.info(
        "Enriching %s libraries with GitHub data (%s concurrent requests)",
        total,
        batch_size,
    )

    with ThreadPoolExecutor(max_workers=batch_size, thread_name_prefix="enrich") as executor:
        for start in range(0, total, batch_size):
            batch = packages[start : start + batch_size]
            results = list(executor.map(lambda package: _lookup(package, fetch), batch))

            # Only this thread mutates packages, after the whole batch settled.
            for package, metadata in zip(batch, results):
                if metadata is not None:
                    package.apply_metadata(metadata)
                    enriched += 1

            processed = start + len(batch)
            if processed // progress_every > start // progress_every or processed == total:
                LOGGER.info("Processed %s/%s libraries...", processed, total)

    LOGGER.info("Enrichment complete: enriched=%s of %s", enriched, total)
    return list(packages)


def _lookup(package: Package, fetch: Fetcher) -> RepoMetadata | None:
    if package.repo_identity is None:
        LOGGER.warning("[Skipping] No GitHub URL for library: %s", package.name)
        return None

    try:
        return fetch(package.repo_identity)
    except Exception:  # one lookup must never sink its batch
        LOGGER.exception("Unexpected error enriching library %s", package.name)
        return None
