"""Package model, resolution and installation core."""
from .errors import (
    ArchiveError,
    ManifestError,
    ManifestMissingError,
    ManifestNameMismatchError,
    ManifestParseError,
    PackageError,
    ResolutionError,
    TransportError,
)
from .identifiers import ScopedIdentifier
from .installer import InstallLayout, InstallResult, InstallStatus, PackageInstaller
from .manifest import PackageManifest, RuntimeFiles, parse_manifest
from .package import Package, PackageVersion
from .resolver import SourceResolver

__all__ = [
    "ArchiveError",
    "InstallLayout",
    "InstallResult",
    "InstallStatus",
    "ManifestError",
    "ManifestMissingError",
    "ManifestNameMismatchError",
    "ManifestParseError",
    "Package",
    "PackageError",
    "PackageInstaller",
    "PackageManifest",
    "PackageVersion",
    "ResolutionError",
    "RuntimeFiles",
    "ScopedIdentifier",
    "SourceResolver",
    "TransportError",
    "parse_manifest",
]
