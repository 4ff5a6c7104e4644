"""Newest-first ordering of library version strings."""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable
from typing import Any

from models import VersionRecord

_VERSION_PREFIX_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?", re.ASCII)


def parse_version(value: Any) -> tuple[int, int, int]:
    """Parse the leading ``major[.minor[.patch]]`` of a version string.

    Missing components default to 0 and anything unparseable is 0.0.0, so
    this never raises.
    """
    if not isinstance(value, str):
        return (0, 0, 0)

    match = _VERSION_PREFIX_RE.match(value.strip())
    if not match:
        return (0, 0, 0)

    major, minor, patch = match.groups()
    return (int(major), int(minor or 0), int(patch or 0))


def compare_versions(a: Any, b: Any) -> int:
    """Comparator for newest-first sorting.

    Negative when ``a`` is newer than ``b``, positive when older, 0 when the
    numeric prefixes are equal.
    """
    a_key = parse_version(a)
    b_key = parse_version(b)
    if a_key == b_key:
        return 0
    return -1 if a_key > b_key else 1


def sort_versions_desc(records: Iterable[VersionRecord]) -> list[VersionRecord]:
    """Return records newest-first; equal versions keep their input order."""
    return sorted(records, key=functools.cmp_to_key(lambda x, y: compare_versions(x.version, y.version)))
