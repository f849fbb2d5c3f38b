"""Zip artifact access: entry listing, manifest reading and staged extraction."""
from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path, PurePosixPath
from typing import List

from constants import Constants

from .errors import ArchiveError, ManifestMissingError
from .manifest import PackageManifest, parse_manifest

logger = logging.getLogger(__name__)


def _check_member(name: str) -> None:
    path = PurePosixPath(name)
    if path.is_absolute() or ".." in path.parts or ":" in (path.parts[0] if path.parts else ""):
        raise ArchiveError(f"archive entry escapes extraction root: {name!r}")


class PackageArchive:
    """Read-only view over a zip artifact held in memory."""

    def __init__(self, zf: zipfile.ZipFile):
        self._zip = zf

    @classmethod
    def open(cls, data: bytes) -> "PackageArchive":
        """Open ``data`` as a zip archive.

        Raises:
            ArchiveError: If the bytes are not a zip or contain unsafe entry names.
        """
        try:
            zf = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
            raise ArchiveError(f"artifact is not a readable zip archive: {exc}") from exc
        for name in zf.namelist():
            _check_member(name)
        return cls(zf)

    def entries(self) -> List[str]:
        """File entry names (directories excluded), in archive order."""
        return [info.filename for info in self._zip.infolist() if not info.is_dir()]

    def read(self, name: str) -> bytes:
        """Raw bytes of entry ``name``.

        Raises:
            KeyError: If the entry does not exist.
        """
        return self._zip.read(name)

    def read_manifest(self) -> PackageManifest:
        """Parse the manifest at the archive root.

        Raises:
            ManifestMissingError: If there is no manifest entry.
            ManifestParseError: If the manifest cannot be parsed.
        """
        try:
            raw = self.read(Constants.MANIFEST_FILE)
        except KeyError as exc:
            raise ManifestMissingError(f"archive has no {Constants.MANIFEST_FILE}") from exc
        return parse_manifest(raw)

    def extract_all(self, destination: Path) -> Path:
        """Extract every entry below ``destination``, overwriting existing files."""
        destination = Path(destination)
        destination.mkdir(parents=True, exist_ok=True)
        self._zip.extractall(destination)
        logger.debug("Extracted %d entries to %s", len(self._zip.namelist()), destination)
        return destination
