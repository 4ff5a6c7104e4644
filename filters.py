"""Final listing filter and popularity ranking for the registry."""

from __future__ import annotations

from collections.abc import Iterable

from models import Package


def is_listed(package: Package) -> bool:
    """Return True if the package belongs in the published registry.

    Decision logic:
    - False  — no canonical GitHub repository.
    - False  — GitHub reports the repository archived (or it no longer exists).
    - True   — otherwise, including packages whose lookup failed or never ran;
               those rank last with zero stars instead of silently disappearing.
    """
    if not package.repository:
        return False
    return package.is_archived is not True


def rank_packages(packages: Iterable[Package]) -> list[Package]:
    """Filter to listed packages, most stars first, ties by case-sensitive name."""
    listed = [package for package in packages if is_listed(package)]
    listed.sort(key=lambda package: (-(package.stars or 0), package.name))
    return listed
