"""Resolvers map identifier strings onto packages of one provider."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from versioning.semver import VersionRange

from .interfaces import IdentifierCodec, ReleaseSource
from .package import Package, PackageVersion, latest_in_range

logger = logging.getLogger(__name__)


class SourceResolver:
    """Resolve identifiers in one provider's namespace.

    "Not resolvable here" is always reported as None: unknown syntax, unknown
    package and a package without a single parseable version all look the same,
    so a chain of heterogeneous resolvers can be probed uniformly. Only
    transport failures raise.
    """

    def __init__(self, name: str, codec: IdentifierCodec, source: ReleaseSource):
        self.name = name
        self.codec = codec
        self.source = source

    def __repr__(self) -> str:
        return f"SourceResolver({self.name!r})"

    async def _lookup(self, identifier: str) -> Tuple[Optional[Package], List[PackageVersion]]:
        decoded = self.codec.parse(identifier)
        if decoded is None:
            logger.debug("%s: identifier %r not valid for this resolver", self.name, identifier)
            return None, []
        package = Package(decoded, self.source)
        versions = await package.get_versions()
        if not versions:
            logger.debug("%s: no versions found for %s", self.name, identifier)
            return None, []
        return package, versions

    async def resolve_package(self, identifier: str) -> Optional[Package]:
        """Return a package handle for ``identifier`` or None."""
        package, _ = await self._lookup(identifier)
        return package

    async def resolve_version(self, identifier: str, version_range: VersionRange) -> Optional[PackageVersion]:
        """Latest version of ``identifier`` inside ``version_range``, or None.

        The source is listed once; the pick is made from that listing.
        """
        _, versions = await self._lookup(identifier)
        return latest_in_range(versions, version_range)

    async def resolve_artifact(self, identifier: str, version_range: str) -> Optional[bytes]:
        """Resolve and download in one step.

        Raises:
            ValueError: If ``version_range`` is not a valid range.
            TransportError: If the download fails.
        """
        version = await self.resolve_version(identifier, VersionRange(version_range))
        if version is None:
            return None
        return await version.download()
