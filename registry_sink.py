"""JSON file sink for the generated library registry."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from models import Package, Registry

REGISTRY_OUTPUT_PATH = os.getenv("REGISTRY_OUTPUT_PATH", "registry.json")

LOGGER = logging.getLogger(__name__)


def build_registry(libraries: Iterable[Package], generated_at: datetime | None = None) -> Registry:
    """Wrap the ranked libraries with the generation timestamp and count."""
    return Registry(
        generated_at=generated_at or datetime.now(UTC),
        libraries=tuple(libraries),
    )


def write_registry(registry: Registry, path: str | Path | None = None) -> Path:
    """Serialize the registry to ``path`` (default REGISTRY_OUTPUT_PATH) as JSON.

    Args:
        registry: Assembled registry to persist.
        path:     Optional destination; parent directories are created.
    """
    destination = Path(path or REGISTRY_OUTPUT_PATH)
    destination.parent.mkdir(parents=True, exist_ok=True)

    with destination.open("w", encoding="utf-8") as fh:
        json.dump(registry.to_dict(), fh, indent=2, ensure_ascii=False)
        fh.write("\n")

    LOGGER.info(
        "Wrote registry with %s libraries to %s", registry.total_libraries, destination
    )
    return destination
