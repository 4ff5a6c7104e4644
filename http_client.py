"""Deadline-bounded HTTP GET plus a generic exponential-backoff retry wrapper."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

import requests

FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_BASE_DELAY_SECONDS = float(os.getenv("RETRY_BASE_DELAY_SECONDS", "1"))
RETRY_MAX_DELAY_SECONDS = float(os.getenv("RETRY_MAX_DELAY_SECONDS", "10"))
_CHUNK_SIZE = 64 * 1024

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay: float = RETRY_BASE_DELAY_SECONDS,
    max_delay: float = RETRY_MAX_DELAY_SECONDS,
) -> float:
    """Exponential delay ``base * 2**attempt`` clamped to ``max_delay``."""
    return min(base_delay * (2**attempt), max_delay)


def with_retry(
    operation: Callable[[], T],
    *,
    max_attempts: int = MAX_RETRIES,
    context: str = "",
    base_delay: float = RETRY_BASE_DELAY_SECONDS,
    max_delay: float = RETRY_MAX_DELAY_SECONDS,
) -> T:
    """Run ``operation`` until it succeeds or ``max_attempts`` is exhausted.

    The failure of the last attempt propagates unchanged.

    Args:
        operation: Zero-argument callable performing one attempt.
        max_attempts: Total number of attempts (at least one is always made).
        context: Label prefixed to retry log lines, e.g. ``[Arduino index]``.
        base_delay: Backoff base in seconds.
        max_delay: Upper bound for a single backoff sleep in seconds.
    """
    attempts = max(1, max_attempts)

    for attempt in range(1, attempts):
        try:
            return operation()
        except Exception as exc:
            delay = backoff_delay(attempt, base_delay=base_delay, max_delay=max_delay)
            LOGGER.warning(
                "%s Attempt %s/%s failed: %s. Retrying in %.1fs...",
                context,
                attempt,
                attempts,
                exc,
                delay,
            )
            time.sleep(delay)

    return operation()


def get_with_deadline(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout: float = FETCH_TIMEOUT_SECONDS,
) -> requests.Response:
    """GET ``url`` with the whole call, body included, bounded by ``timeout``.

    ``requests`` only bounds the connect and each individual socket read, so a
    server trickling bytes could hold the call open forever. Here the body is
    streamed against a wall-clock deadline and a watchdog shuts the socket down
    when it passes, unblocking any read in progress.

    Returns the response with its body already loaded. Raises
    requests.Timeout once the deadline is exceeded.
    """
    deadline = time.monotonic() + timeout
    response = requests.get(url, headers=headers, timeout=timeout, stream=True)

    watchdog = threading.Timer(max(0.0, deadline - time.monotonic()), response.raw.shutdown)
    watchdog.daemon = True
    watchdog.start()

    chunks: list[bytes] = []
    try:
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            if time.monotonic() >= deadline:
                raise requests.Timeout(f"GET {url} exceeded {timeout:.1f}s")
            chunks.append(chunk)
        # A shutdown socket without Content-Length reads as a clean, short EOF.
        if time.monotonic() >= deadline:
            raise requests.Timeout(f"GET {url} exceeded {timeout:.1f}s")
    except requests.Timeout:
        response.close()
        raise
    except Exception as exc:
        response.close()
        if time.monotonic() >= deadline:
            raise requests.Timeout(f"GET {url} exceeded {timeout:.1f}s") from exc
        raise
    finally:
        watchdog.cancel()

    # Body is fully read; .json() and .text now serve it from memory.
    response._content = b"".join(chunks)
    return response


def get_json(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout: float = FETCH_TIMEOUT_SECONDS,
) -> Any:
    """GET ``url`` and return the decoded JSON body.

    Raises requests.Timeout when the call exceeds ``timeout``, and
    requests.HTTPError for non-success statuses.
    """
    response = get_with_deadline(url, headers=headers, timeout=timeout)
    response.raise_for_status()
    return response.json()
