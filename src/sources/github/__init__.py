"""GitHub releases provider: one release per version, the release asset is the artifact."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from packages.errors import TransportError
from packages.identifiers import ScopedIdentifier
from packages.interfaces import ReleaseRecord

from .client import GithubReleaseClient, select_asset


class GithubReleaseSource:
    """``ReleaseSource`` over GitHub releases of ``owner/repo``."""

    def __init__(self, client: Optional[GithubReleaseClient] = None):
        self.client = client or GithubReleaseClient()

    def list_versions(self, identifier: ScopedIdentifier) -> List[ReleaseRecord]:
        return [
            (release.get("tag_name") or "", release)
            for release in self.client.get_releases(identifier.owner, identifier.repo)
        ]

    def get_latest(self, identifier: ScopedIdentifier) -> Optional[ReleaseRecord]:
        release = self.client.get_latest_release(identifier.owner, identifier.repo)
        if release is None:
            return None
        return release.get("tag_name") or "", release

    def fetch_asset(self, identifier: ScopedIdentifier, release: Dict[str, Any]) -> bytes:
        asset = select_asset(release)
        if asset is None or asset.get("id") is None:
            raise TransportError(f"release {release.get('tag_name')!r} of {identifier} has no asset")
        return self.client.download_asset(identifier.owner, identifier.repo, asset["id"])


__all__ = ["GithubReleaseClient", "GithubReleaseSource"]
