"""Tests for the shared HTTP helpers."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from common import http_client
from packages.errors import TransportError


def response(status, text="", content=b"", headers=None):
    mock = MagicMock()
    mock.status_code = status
    mock.text = text
    mock.content = content
    mock.headers = headers or {}
    return mock


@pytest.fixture(autouse=True)
def clean_cache():
    http_client.clear_cache()
    yield
    http_client.clear_cache()


class TestRobustGet:
    """Test retries and caching."""

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_retries_then_succeeds(self, mock_get, mock_sleep):
        """Connection errors and 5xx responses are retried."""
        mock_get.side_effect = [
            requests.ConnectionError("reset"),
            response(502),
            response(200, text="ok"),
        ]

        status, _, text = http_client.robust_get("https://api.example.test/a")

        assert (status, text) == (200, "ok")
        assert mock_get.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_exhausted_retries_raise(self, mock_get, mock_sleep):
        """Persistent failures raise TransportError carrying the last status."""
        mock_get.return_value = response(503)

        with pytest.raises(TransportError) as excinfo:
            http_client.robust_get("https://api.example.test/a")

        assert excinfo.value.status_code == 503

    @patch("common.http_client.requests.get")
    def test_4xx_not_retried(self, mock_get):
        """Client errors are returned to the caller immediately."""
        mock_get.return_value = response(404)
        status, _, _ = http_client.robust_get("https://api.example.test/missing")
        assert status == 404
        assert mock_get.call_count == 1

    @patch("common.http_client.requests.get")
    def test_successful_responses_cached(self, mock_get):
        """A second identical GET is served from cache."""
        mock_get.return_value = response(200, text="[]")
        http_client.robust_get("https://api.example.test/c")
        http_client.robust_get("https://api.example.test/c")
        assert mock_get.call_count == 1

    @patch("common.http_client.requests.get")
    def test_user_agent_sent(self, mock_get):
        """Requests identify the client."""
        mock_get.return_value = response(200, text="{}")
        http_client.robust_get("https://api.example.test/ua", headers={"Accept": "x"})
        headers = mock_get.call_args[1]["headers"]
        assert headers["User-Agent"].startswith("firmpkg/")
        assert headers["Accept"] == "x"


class TestGetJsonAndBytes:
    """Test JSON decoding and binary downloads."""

    @patch("common.http_client.requests.get")
    def test_get_json(self, mock_get):
        """JSON bodies are decoded; invalid JSON yields None."""
        mock_get.return_value = response(200, text='{"a": 1}')
        assert http_client.get_json("https://api.example.test/j")[2] == {"a": 1}

        mock_get.return_value = response(200, text="<html>")
        assert http_client.get_json("https://api.example.test/k")[2] is None

    @patch("common.http_client.requests.get")
    def test_get_bytes_not_cached(self, mock_get):
        """Binary downloads always hit the network."""
        mock_get.return_value = response(200, content=b"PK")
        assert http_client.get_bytes("https://api.example.test/b") == b"PK"
        assert http_client.get_bytes("https://api.example.test/b") == b"PK"
        assert mock_get.call_count == 2

    @patch("common.http_client.requests.get")
    def test_get_bytes_non_200(self, mock_get):
        """A non-200 download raises."""
        mock_get.return_value = response(404)
        with pytest.raises(TransportError):
            http_client.get_bytes("https://api.example.test/b")
