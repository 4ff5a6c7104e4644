"""Arduino library index ingestion and grouping into unique packages."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from typing import Any

from http_client import get_json, with_retry
from models import Package, RawEntry
from url_parser import canonical_repo_url, parse_github_url
from versions import sort_versions_desc

# Official index consumed by the Arduino IDE library manager.
LIBRARY_INDEX_URL = os.getenv(
    "LIBRARY_INDEX_URL", "https://downloads.arduino.cc/libraries/library_index.json"
)

LOGGER = logging.getLogger(__name__)


def fetch_library_index(url: str = LIBRARY_INDEX_URL) -> list[RawEntry]:
    """Download the library index and return its raw entries in listed order.

    Raises the last transport error once retries are exhausted, and
    RuntimeError when the payload has no ``libraries`` array. Both are fatal
    for the run.
    """
    LOGGER.info("Fetching Arduino library index from %s", url)
    payload = with_retry(lambda: get_json(url), context="[Arduino index]")
    entries = parse_index_payload(payload)
    LOGGER.info("Found %s raw library entries", len(entries))
    return entries


def parse_index_payload(payload: Any) -> list[RawEntry]:
    if not isinstance(payload, dict) or not isinstance(payload.get("libraries"), list):
        raise RuntimeError("Invalid Arduino library index format: 'libraries' array not found")
    return [RawEntry.from_payload(item) for item in payload["libraries"]]


def group_libraries(entries: Iterable[RawEntry]) -> dict[str, Package]:
    """Collapse raw entries into one Package per name, first-seen order.

    Descriptive fields come from the first entry seen for a name; every entry
    contributes a version record. Versions end up sorted newest-first.
    """
    packages: dict[str, Package] = {}
    skipped = 0

    for entry in entries:
        if not entry.name or not entry.name.strip():
            skipped += 1
            LOGGER.warning("Skipping invalid library entry (missing name)")
            continue

        package = packages.get(entry.name)
        if package is None:
            identity = parse_github_url(entry.website) or parse_github_url(entry.repository)
            package = Package(
                name=entry.name,
                author=entry.author,
                maintainer=entry.maintainer,
                sentence=entry.sentence,
                paragraph=entry.paragraph,
                website=entry.website,
                category=entry.category,
                architectures=entry.architectures,
                types=entry.types,
                repository=canonical_repo_url(identity),
                repo_identity=identity,
            )
            packages[entry.name] = package

        package.versions.append(entry.to_version_record())

    for package in packages.values():
        package.versions = sort_versions_desc(package.versions)

    LOGGER.info(
        "Grouped into %s unique libraries (skipped=%s)", len(packages), skipped
    )
    return packages
