import time
from unittest.mock import MagicMock, call, patch

import pytest
import requests

from http_client import backoff_delay, get_json, get_with_deadline, with_retry


def test_backoff_delay_doubles_and_caps() -> None:
    assert backoff_delay(1, base_delay=1.0, max_delay=10.0) == 2.0
    assert backoff_delay(2, base_delay=1.0, max_delay=10.0) == 4.0
    assert backoff_delay(3, base_delay=1.0, max_delay=10.0) == 8.0
    assert backoff_delay(4, base_delay=1.0, max_delay=10.0) == 10.0


def test_with_retry_returns_first_success_without_sleeping() -> None:
    operation = MagicMock(return_value="ok")

    with patch("http_client.time.sleep") as mock_sleep:
        assert with_retry(operation, max_attempts=3) == "ok"

    assert operation.call_count == 1
    mock_sleep.assert_not_called()


def test_with_retry_recovers_after_transient_failures() -> None:
    operation = MagicMock(side_effect=[requests.ConnectionError("boom"), requests.Timeout("slow"), "ok"])

    with patch("http_client.time.sleep") as mock_sleep:
        result = with_retry(operation, max_attempts=3, base_delay=1.0, max_delay=10.0)

    assert result == "ok"
    assert mock_sleep.call_args_list == [call(2.0), call(4.0)]


def test_with_retry_reraises_final_failure() -> None:
    final = requests.ConnectionError("still down")
    operation = MagicMock(side_effect=[requests.ConnectionError("down"), final])

    with patch("http_client.time.sleep") as mock_sleep, pytest.raises(requests.ConnectionError) as excinfo:
        with_retry(operation, max_attempts=2)

    assert excinfo.value is final
    assert operation.call_count == 2
    assert mock_sleep.call_count == 1


def test_get_json_passes_timeout_and_raises_for_status() -> None:
    response = MagicMock()
    response.json.return_value = {"libraries": []}

    with patch("http_client.requests.get", return_value=response) as mock_get:
        assert get_json("https://example.test/index.json", timeout=5) == {"libraries": []}

    mock_get.assert_called_once_with(
        "https://example.test/index.json", headers=None, timeout=5, stream=True
    )
    response.raise_for_status.assert_called_once()


def test_get_json_surfaces_timeout() -> None:
    with patch("http_client.requests.get", side_effect=requests.Timeout("too slow")):
        with pytest.raises(requests.Timeout):
            get_json("https://example.test/index.json")


def test_with_retry_single_attempt_raises_without_sleeping() -> None:
    error = requests.ConnectionError("down")
    operation = MagicMock(side_effect=error)

    with patch("http_client.time.sleep") as mock_sleep:
        with pytest.raises(requests.ConnectionError) as exc_info:
            with_retry(operation, max_attempts=0)

    assert exc_info.value is error
    assert operation.call_count == 1
    mock_sleep.assert_not_called()


def test_get_with_deadline_returns_loaded_body(trickle_server) -> None:
    base_url = trickle_server(byte_delay=0)

    response = get_with_deadline(f"{base_url}/repos/a/foo", timeout=5.0)

    assert response.status_code == 200
    assert response.json()["stargazers_count"] == 5


def test_get_with_deadline_bounds_slow_body(trickle_server) -> None:
    """A server trickling bytes cannot stretch the call past its timeout."""
    base_url = trickle_server(byte_delay=0.1)

    started = time.monotonic()
    with pytest.raises(requests.Timeout):
        get_with_deadline(f"{base_url}/repos/a/foo", timeout=1.0)
    elapsed = time.monotonic() - started

    assert elapsed < 2.5
