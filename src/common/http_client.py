"""Shared HTTP helpers used by remote package sources.

Encapsulates request/timeout/retry handling so source clients avoid
duplicating try/except blocks. Transport failures surface as
``TransportError`` instead of terminating the process, because the installer
needs to decide how far a failure propagates.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from packages.errors import TransportError

logger = logging.getLogger(__name__)


# Simple in-memory cache for metadata responses.
# Guarded by _http_cache_lock because downloads run on worker threads.
_http_cache: Dict[str, Tuple[Any, float]] = {}
_http_cache_lock = threading.Lock()


def _get_cache_key(method: str, url: str, headers: Optional[Dict[str, str]] = None) -> str:
    """Generate cache key from request parameters."""
    headers_str = str(sorted(headers.items())) if headers else ""
    return f"{method}:{url}:{headers_str}"


def _is_cache_valid(cache_entry: Tuple[Any, float]) -> bool:
    """Check if cache entry is still valid."""
    _, cached_time = cache_entry
    return time.time() - cached_time < Constants.HTTP_CACHE_TTL_SEC


def clear_cache() -> None:
    """Drop every cached response."""
    with _http_cache_lock:
        _http_cache.clear()


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def _request_with_retries(url: str, headers: Dict[str, str], **kwargs: Any) -> requests.Response:
    """GET ``url`` retrying on connection errors and 5xx responses.

    Raises:
        TransportError: When every attempt failed.
    """
    safe_target = safe_url(url)
    last_error = "no attempt made"
    last_status = 0

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        attempt=attempt + 1,
                    ),
                )
            try:
                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    **kwargs,
                )
            except requests.Timeout:
                last_error = f"timed out after {Constants.REQUEST_TIMEOUT} seconds"
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_error = str(exc)
                continue

            if response.status_code >= 500:
                last_error = f"server error {response.status_code}"
                last_status = response.status_code
                continue

            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response ok",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action="GET",
                        outcome="success",
                        status_code=response.status_code,
                        duration_ms=t.duration_ms(),
                        target=safe_target,
                    ),
                )
            return response

    logger.error("GET %s failed after %d attempts: %s", safe_target, Constants.HTTP_RETRY_MAX, last_error)
    raise TransportError(
        f"GET {safe_target} failed after {Constants.HTTP_RETRY_MAX} attempts: {last_error}",
        status_code=last_status,
    )


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout, retries, and caching.

    Returns:
        Tuple of (status_code, headers_dict, text).

    Raises:
        TransportError: When the request could not be completed.
    """
    request_headers = _default_headers(headers)
    cache_key = _get_cache_key("GET", url, request_headers)

    with _http_cache_lock:
        entry = _http_cache.get(cache_key)
    if entry is not None and _is_cache_valid(entry):
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP cache hit",
                extra=extra_context(
                    event="cache_hit",
                    component="http_client",
                    action="GET",
                    target=safe_url(url),
                ),
            )
        return entry[0]

    response = _request_with_retries(url, request_headers, **kwargs)
    result = (response.status_code, dict(response.headers), response.text)
    if response.status_code == 200:
        with _http_cache_lock:
            _http_cache[cache_key] = (result, time.time())
    return result


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response.

    Args:
        url: Target URL
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = robust_get(url, headers=headers, **kwargs)

    if status_code == 200 and text:
        try:
            return status_code, response_headers, json.loads(text)
        except json.JSONDecodeError:
            if is_debug_enabled(logger):
                logger.debug(
                    "JSON decode error",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="get_json",
                        outcome="json_decode_error",
                        status_code=status_code,
                        target=safe_url(url),
                    ),
                )
            return status_code, response_headers, None

    return status_code, response_headers, None


def get_bytes(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> bytes:
    """Download a binary payload. Responses are never cached.

    Raises:
        TransportError: On transport failure or any non-200 status.
    """
    response = _request_with_retries(url, _default_headers(headers), **kwargs)
    if response.status_code != 200:
        raise TransportError(
            f"GET {safe_url(url)} returned status {response.status_code}",
            status_code=response.status_code,
        )
    return response.content
