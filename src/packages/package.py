"""Packages and package versions backed by a release source.

``Package`` only knows how to enumerate versions through its source; every
derived query (specific version, range filter, latest in range) is computed
from a single ``get_versions()`` snapshot.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import semantic_version

from common.logging_utils import extra_context, is_debug_enabled
from versioning.semver import VersionRange, parse_version, selection_key

from .interfaces import ReleaseSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageVersion:
    """One released version of a package.

    Attributes:
        identifier: Identifier shared with the parent package.
        version: Parsed semantic version of the release tag.
        release: Provider-specific release record, opaque to the core.
        source: Source able to download the release's artifact.
    """

    identifier: Any
    version: semantic_version.Version
    release: Any = field(compare=False, repr=False)
    source: ReleaseSource = field(compare=False, repr=False)

    @classmethod
    def create(
        cls,
        source: ReleaseSource,
        identifier: Any,
        tag: str,
        release: Any,
    ) -> Optional["PackageVersion"]:
        """Build a version from a raw release record.

        Returns:
            The version, or None when ``tag`` is not a semantic version.
        """
        version = parse_version(tag)
        if version is None:
            return None
        return cls(identifier=identifier, version=version, release=release, source=source)

    async def download(self) -> bytes:
        """Fetch the artifact bytes. Every call re-fetches.

        Raises:
            TransportError: When the source cannot deliver the artifact.
        """
        if is_debug_enabled(logger):
            logger.debug(
                "Downloading artifact",
                extra=extra_context(
                    event="download",
                    component="package",
                    action="download",
                    target=str(self.identifier),
                    version=str(self.version),
                ),
            )
        return await asyncio.to_thread(self.source.fetch_asset, self.identifier, self.release)


class Package:
    """A package identity plus the source its versions come from."""

    def __init__(self, identifier: Any, source: ReleaseSource):
        self.identifier = identifier
        self.source = source

    def __repr__(self) -> str:
        return f"Package({self.identifier!s})"

    def _build(self, record) -> Optional[PackageVersion]:
        tag, release = record
        return PackageVersion.create(self.source, self.identifier, tag, release)

    async def get_versions(self) -> List[PackageVersion]:
        """All versions whose tags parse, in the order the source returned them."""
        records = await asyncio.to_thread(self.source.list_versions, self.identifier)
        versions = []
        for record in records:
            version = self._build(record)
            if version is not None:
                versions.append(version)
        return versions

    async def get_latest(self) -> Optional[PackageVersion]:
        """The version the provider marks as latest.

        This is provider-defined and may differ from the highest version.
        """
        record = await asyncio.to_thread(self.source.get_latest, self.identifier)
        if record is None:
            return None
        return self._build(record)

    async def get_version(self, version: semantic_version.Version) -> Optional[PackageVersion]:
        """Find the version comparing equal to ``version`` (build metadata ignored).

        When several candidates are equal, one whose build metadata also matches
        is preferred; otherwise the first in source order is returned.
        """
        matches = await self.get_versions_in_range(VersionRange.exact(version))
        for candidate in matches:
            if candidate.version.build == version.build:
                return candidate
        return matches[0] if matches else None

    async def get_versions_in_range(self, version_range: VersionRange) -> List[PackageVersion]:
        """Versions satisfying ``version_range``, order preserved."""
        return filter_in_range(await self.get_versions(), version_range)

    async def get_latest_in_range(self, version_range: VersionRange) -> Optional[PackageVersion]:
        """Highest version satisfying ``version_range``, or None."""
        return latest_in_range(await self.get_versions(), version_range)


def filter_in_range(versions: List[PackageVersion], version_range: VersionRange) -> List[PackageVersion]:
    return [v for v in versions if v.version in version_range]


def latest_in_range(versions: List[PackageVersion], version_range: VersionRange) -> Optional[PackageVersion]:
    """Pick the highest of ``versions`` inside ``version_range``.

    Ties between precedence-equal versions go to the lexically greatest
    build metadata.
    """
    matches = filter_in_range(versions, version_range)
    if not matches:
        return None
    return max(matches, key=lambda v: selection_key(v.version))
