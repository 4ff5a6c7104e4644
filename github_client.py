"""GitHub REST client for per-repository metadata with rate-limit handling."""

from __future__ import annotations

import logging
import os
import time
from typing import Any

import requests

from http_client import FETCH_TIMEOUT_SECONDS, MAX_RETRIES, get_with_deadline
from models import RepoIdentity, RepoMetadata

GITHUB_API_URL = "https://api.github.com"
RATE_LIMIT_STATUS_CODES: frozenset[int] = frozenset({403, 429})
DEFAULT_RATE_LIMIT_WAIT_SECONDS = float(os.getenv("DEFAULT_RATE_LIMIT_WAIT_SECONDS", "60"))
RATE_LIMIT_MARGIN_SECONDS = 1.0
# GitHub rate-limit windows reset hourly.
MAX_RATE_LIMIT_WAIT_SECONDS = 3600.0

LOGGER = logging.getLogger(__name__)


def build_headers(token: str | None = None) -> dict[str, str]:
    """Request headers for the GitHub API; the token only raises the rate limit."""
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def rate_limit_wait_seconds(reset_header: str | None, now: float | None = None) -> float:
    """Seconds to wait before retrying a rate-limited request.

    ``reset_header`` is the ``X-RateLimit-Reset`` value (epoch seconds). When
    it is missing or not an integer the fixed default wait is used. The wait
    never exceeds MAX_RATE_LIMIT_WAIT_SECONDS.
    """
    if not reset_header:
        return DEFAULT_RATE_LIMIT_WAIT_SECONDS

    try:
        reset_at = int(reset_header.strip())
    except ValueError:
        return DEFAULT_RATE_LIMIT_WAIT_SECONDS

    current = time.time() if now is None else now
    # Clamp while still an int: huge header values overflow float conversion.
    remaining = min(max(0, reset_at - int(current)), MAX_RATE_LIMIT_WAIT_SECONDS)
    return float(min(remaining + RATE_LIMIT_MARGIN_SECONDS, MAX_RATE_LIMIT_WAIT_SECONDS))


def fetch_repo_metadata(
    identity: RepoIdentity,
    *,
    headers: dict[str, str] | None = None,
    max_retries: int = MAX_RETRIES,
    timeout: float = FETCH_TIMEOUT_SECONDS,
) -> RepoMetadata | None:
    """Fetch live metadata for one repository.

    Returns ``RepoMetadata.not_found()`` for a 404 and None for every other
    failure (timeout, transport error, unexpected status, rate limit still in
    force after ``max_retries`` waits). Never raises for a single lookup.
    """
    api_url = f"{GITHUB_API_URL}/repos/{identity.owner}/{identity.repo}"
    request_headers = headers if headers is not None else build_headers()

    for retry in range(max_retries + 1):
        try:
            response = get_with_deadline(api_url, headers=request_headers, timeout=timeout)
        except requests.Timeout:
            LOGGER.error("Timeout fetching %s", identity.full_name)
            return None
        except requests.RequestException as exc:
            LOGGER.error("Error fetching GitHub data for %s: %s", identity.full_name, exc)
            return None

        if response.status_code in RATE_LIMIT_STATUS_CODES:
            if retry >= max_retries:
                LOGGER.error(
                    "Rate limit: max retries (%s) exceeded for %s",
                    max_retries,
                    identity.full_name,
                )
                return None

            wait_seconds = rate_limit_wait_seconds(response.headers.get("X-RateLimit-Reset"))
            LOGGER.warning(
                "Rate limit hit for %s. Waiting %.0fs (attempt %s/%s)...",
                identity.full_name,
                wait_seconds,
                retry + 1,
                max_retries,
            )
            time.sleep(wait_seconds)
            continue

        if response.status_code == 404:
            LOGGER.warning("Repository %s not found, treating as archived", identity.full_name)
            return RepoMetadata.not_found()

        if not response.ok:
            LOGGER.error(
                "GitHub API error for %s: %s %s",
                identity.full_name,
                response.status_code,
                response.reason,
            )
            return None

        try:
            return parse_repo_payload(response.json())
        except (ValueError, RuntimeError) as exc:
            LOGGER.error("Unexpected GitHub payload for %s: %s", identity.full_name, exc)
            return None

    return None


def parse_repo_payload(payload: Any) -> RepoMetadata:
    """Map a ``GET /repos/{owner}/{repo}`` body onto RepoMetadata."""
    if not isinstance(payload, dict):
        raise RuntimeError("Unexpected GitHub repository payload shape: expected an object")

    license_block = payload.get("license") if isinstance(payload.get("license"), dict) else {}
    topics = payload.get("topics") if isinstance(payload.get("topics"), list) else []

    return RepoMetadata(
        stars=_as_count(payload.get("stargazers_count")),
        is_archived=payload.get("archived") is True,
        pushed_at=_as_str(payload.get("pushed_at")),
        open_issues=_as_count(payload.get("open_issues_count")),
        description=_as_str(payload.get("description")),
        license=_as_str(license_block.get("spdx_id")),
        topics=tuple(topic for topic in topics if isinstance(topic, str)),
    )


def _as_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None
