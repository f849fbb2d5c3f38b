"""GitHub REST client for release listing and asset download.

Release metadata is read through the shared cached/retrying HTTP helpers;
asset downloads bypass the cache.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from constants import Constants
from common.http_client import get_bytes, get_json
from common.logging_utils import safe_url
from packages.errors import TransportError

logger = logging.getLogger(__name__)


def next_page_url(headers: Dict[str, str]) -> Optional[str]:
    """Extract the rel="next" URL from a Link response header, if present."""
    link = None
    for key, value in headers.items():
        if key.lower() == "link":
            link = value
            break
    if not link:
        return None
    for entry in requests.utils.parse_header_links(link):
        if entry.get("rel") == "next":
            return entry.get("url")
    return None


def select_asset(release: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Pick the downloadable asset of a release: first ``.zip``, else the first asset."""
    assets = [a for a in release.get("assets") or [] if isinstance(a, dict)]
    if not assets:
        return None
    for asset in assets:
        if str(asset.get("name", "")).lower().endswith(".zip"):
            return asset
    return assets[0]


class GithubReleaseClient:
    """Lightweight REST client for GitHub release endpoints.

    No authentication is sent; requests are subject to anonymous rate limits.
    """

    def __init__(self, base_url: Optional[str] = None):
        """Initialize the client.

        Args:
            base_url: API root (defaults to Constants.GITHUB_API_BASE)
        """
        self.base_url = (base_url or Constants.GITHUB_API_BASE).rstrip("/")

    def _get_headers(self, accept: str = "application/vnd.github+json") -> Dict[str, str]:
        return {
            "Accept": accept,
            "X-GitHub-Api-Version": Constants.GITHUB_API_VERSION,
        }

    def get_releases(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        """Fetch every published release carrying at least one asset.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            Release dicts in API order (newest first); empty when the repository is unknown.

        Raises:
            TransportError: On any failure other than a 404.
        """
        url: Optional[str] = (
            f"{self.base_url}/repos/{owner}/{repo}/releases?per_page={Constants.REPO_API_PER_PAGE}"
        )
        releases: List[Dict[str, Any]] = []
        while url:
            status, headers, data = get_json(url, headers=self._get_headers())
            if status == 404:
                logger.debug("No releases for %s/%s (404)", owner, repo)
                return []
            if status != 200 or not isinstance(data, list):
                raise TransportError(
                    f"GET {safe_url(url)} returned status {status}", status_code=status
                )
            for release in data:
                if not isinstance(release, dict) or release.get("draft"):
                    continue
                if select_asset(release) is None:
                    continue
                releases.append(release)
            url = next_page_url(headers)
        return releases

    def get_latest_release(self, owner: str, repo: str) -> Optional[Dict[str, Any]]:
        """Fetch the release GitHub marks as latest, or None.

        Raises:
            TransportError: On any failure other than a 404.
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/releases/latest"
        status, _, data = get_json(url, headers=self._get_headers())
        if status == 404:
            return None
        if status != 200 or not isinstance(data, dict):
            raise TransportError(f"GET {safe_url(url)} returned status {status}", status_code=status)
        if select_asset(data) is None:
            return None
        return data

    def download_asset(self, owner: str, repo: str, asset_id: int) -> bytes:
        """Download the raw bytes of a release asset.

        Raises:
            TransportError: When the asset cannot be fetched.
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/releases/assets/{asset_id}"
        return get_bytes(url, headers=self._get_headers("application/octet-stream"))
