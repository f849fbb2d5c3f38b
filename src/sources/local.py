"""Local-directory provider.

Artifacts live at ``<root>/<owner>/<repo>/<tag>.zip``; the file stem is the
version tag. Useful for offline mirrors and for testing packages before they
are released.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from packages.identifiers import ScopedIdentifier
from packages.interfaces import ReleaseRecord
from versioning.semver import parse_version, selection_key

logger = logging.getLogger(__name__)


class LocalDirectorySource:
    """``ReleaseSource`` reading zip artifacts from a directory tree."""

    def __init__(self, root):
        self.root = Path(root)

    def _package_dir(self, identifier: ScopedIdentifier) -> Path:
        return self.root / identifier.owner / identifier.repo

    def list_versions(self, identifier: ScopedIdentifier) -> List[ReleaseRecord]:
        directory = self._package_dir(identifier)
        if not directory.is_dir():
            logger.debug("No local package directory %s", directory)
            return []
        return [(path.stem, path) for path in sorted(directory.glob("*.zip")) if path.is_file()]

    def get_latest(self, identifier: ScopedIdentifier) -> Optional[ReleaseRecord]:
        """Highest stable version, or the highest prerelease when nothing is stable."""
        parsed = []
        for tag, path in self.list_versions(identifier):
            version = parse_version(tag)
            if version is not None:
                parsed.append((version, tag, path))
        if not parsed:
            return None
        stable = [item for item in parsed if not item[0].prerelease]
        _, tag, path = max(stable or parsed, key=lambda item: selection_key(item[0]))
        return tag, path

    def fetch_asset(self, identifier: ScopedIdentifier, release: Path) -> bytes:
        return Path(release).read_bytes()
