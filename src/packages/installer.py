"""Recursive, concurrent package installer.

An install request walks: resolve -> download -> open archive -> validate the
manifest -> (stage + place files) alongside one recursive install per declared
dependency. Branches run concurrently on the event loop and blocking work is
pushed to the default executor. Problems with a single package (not found, bad
archive, bad manifest) skip that subtree with a warning; transport and
filesystem errors propagate to the caller after every sibling has finished.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from constants import Constants
from common.logging_utils import Timer, extra_context, is_debug_enabled
from versioning.semver import VersionRange

from .archive import PackageArchive
from .errors import ArchiveError, ManifestError, ManifestNameMismatchError, ResolutionError
from .globbing import match_entries, pattern_base, relative_to_base
from .manifest import PackageManifest
from .package import PackageVersion
from .resolver import SourceResolver

logger = logging.getLogger(__name__)

# (identifier, exact version including build metadata)
InstallKey = Tuple[str, str]


class InstallStatus(Enum):
    """Outcome of a single install request."""
    INSTALLED = "installed"
    NOT_FOUND = "not_found"
    INVALID_RANGE = "invalid_range"
    METADATA_ERROR = "metadata_error"
    METADATA_INVALID = "metadata_invalid"
    CYCLE = "cycle"
    DUPLICATE = "duplicate"


@dataclass
class InstallResult:
    """Per-request install outcome, with the results of its dependencies."""
    identifier: str
    requested_range: str
    status: InstallStatus
    version: Optional[str] = None
    files: List[Path] = field(default_factory=list)
    children: List["InstallResult"] = field(default_factory=list)

    @property
    def installed(self) -> bool:
        return self.status is InstallStatus.INSTALLED

    @property
    def skipped_status(self) -> bool:
        """True for outcomes that left the package out (duplicates are not skips)."""
        return self.status not in (InstallStatus.INSTALLED, InstallStatus.DUPLICATE)

    def walk(self) -> Iterator["InstallResult"]:
        """Depth-first iteration over this result and every descendant."""
        yield self
        for child in self.children:
            yield from child.walk()

    def skipped(self) -> List["InstallResult"]:
        """Every result in the tree that was skipped with a warning."""
        return [r for r in self.walk() if r.skipped_status]


@dataclass
class InstallLayout:
    """Where installed files land. Relative paths are taken from the target root."""
    include_dir: str = Constants.DEFAULT_INCLUDE_DIR
    firmware_dir: str = Constants.DEFAULT_FIRMWARE_DIR
    temp_dir: str = Constants.DEFAULT_TEMP_DIR
    manifests_dir: str = Constants.DEFAULT_MANIFESTS_DIR

    @staticmethod
    def under(target: Path, path: str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else target / candidate


@dataclass
class _Session:
    """State shared by every branch of one top-level install() call."""
    seen: Optional[Set[InstallKey]] = None
    staging_locks: Dict[Path, asyncio.Lock] = field(default_factory=dict)

    def lock_for(self, path: Path) -> asyncio.Lock:
        lock = self.staging_locks.get(path)
        if lock is None:
            lock = self.staging_locks[path] = asyncio.Lock()
        return lock


def package_path(identifier) -> PurePosixPath:
    """Relative directory for a package: ``@owner/repo`` maps to ``owner/repo``."""
    return PurePosixPath(str(identifier).lstrip("@"))


def _atomic_copy(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as out, open(source, "rb") as src:
            shutil.copyfileobj(src, out)
        os.replace(tmp_name, destination)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


class PackageInstaller:
    """Install packages (and, recursively, their dependencies) into a target tree."""

    def __init__(
        self,
        resolvers: Sequence[SourceResolver],
        *,
        layout: Optional[InstallLayout] = None,
        logger: Optional[logging.Logger] = None,
        dedupe: bool = False,
    ):
        """Create an installer.

        Args:
            resolvers: Resolvers tried in order for every request.
            layout: Directory layout inside the target; defaults apply when omitted.
            logger: Logger receiving warnings for skipped packages.
            dedupe: Install each exact (identifier, version) at most once per install() call.
        """
        self.resolvers = list(resolvers)
        self.layout = layout or InstallLayout()
        self.logger = logger or logging.getLogger(__name__)
        self.dedupe = dedupe

    async def install(self, identifier: str, version_range: str, target) -> InstallResult:
        """Install ``identifier`` at the latest version within ``version_range``.

        Args:
            identifier: Package identifier string, e.g. "@owner/repo".
            version_range: npm-style range; "" and "latest" mean any version.
            target: Root directory of the project being installed into.

        Returns:
            The result tree for this request and its dependencies.

        Raises:
            TransportError: When a source fails to list or deliver an artifact.
            OSError: When writing into the target or staging tree fails.
        """
        session = _Session(seen=set() if self.dedupe else None)
        return await self._install(identifier, version_range, Path(target), (), session)

    async def resolve(self, identifier: str, version_range: VersionRange) -> PackageVersion:
        """Ask each resolver in turn for the latest version in range.

        Raises:
            ResolutionError: When no resolver produced a matching version.
        """
        for resolver in self.resolvers:
            version = await resolver.resolve_version(identifier, version_range)
            if version is not None:
                logger.debug("%s resolved %s@%s", resolver, identifier, version.version)
                return version
        raise ResolutionError(f"no resolver matched {identifier}: {version_range}")

    async def _install(
        self,
        identifier: str,
        version_range: str,
        target: Path,
        ancestors: Tuple[InstallKey, ...],
        session: _Session,
    ) -> InstallResult:
        try:
            parsed_range = VersionRange(version_range)
        except ValueError:
            self.logger.warning(
                "Could not find package: %s: %s (invalid version range)", identifier, version_range
            )
            return InstallResult(identifier, version_range, InstallStatus.INVALID_RANGE)

        try:
            version = await self.resolve(identifier, parsed_range)
        except ResolutionError:
            self.logger.warning("Could not find package: %s: %s", identifier, version_range)
            return InstallResult(identifier, version_range, InstallStatus.NOT_FOUND)

        resolved = str(version.version)
        key = (identifier, resolved)
        if key in ancestors:
            chain = " -> ".join(f"{i}@{v}" for i, v in ancestors + (key,))
            self.logger.warning("Dependency cycle detected, not descending: %s", chain)
            return InstallResult(identifier, version_range, InstallStatus.CYCLE, resolved)

        if session.seen is not None:
            if key in session.seen:
                self.logger.info("%s@%s already installed in this session", identifier, resolved)
                return InstallResult(identifier, version_range, InstallStatus.DUPLICATE, resolved)
            session.seen.add(key)

        data = await version.download()

        try:
            archive = PackageArchive.open(data)
            manifest = archive.read_manifest()
        except (ArchiveError, ManifestError) as exc:
            self.logger.warning(
                "Could not parse package metadata of: %s: %s (%s)", identifier, resolved, exc
            )
            return InstallResult(identifier, version_range, InstallStatus.METADATA_ERROR, resolved)

        try:
            self._validate(identifier, manifest)
        except ManifestNameMismatchError as exc:
            self.logger.warning("Package metadata of %s: %s is invalid. %s", identifier, resolved, exc)
            return InstallResult(identifier, version_range, InstallStatus.METADATA_INVALID, resolved)

        path = ancestors + (key,)
        branches = [self._stage_and_place(version, archive, manifest, target, session)]
        branches.extend(
            self._install(dep_id, dep_range, target, path, session)
            for dep_id, dep_range in manifest.dependency_entries()
        )
        outcomes = await asyncio.gather(*branches, return_exceptions=True)
        self._raise_first(outcomes, f"{identifier}@{resolved}")

        files, children = outcomes[0], list(outcomes[1:])
        self.logger.info("Installed %s@%s (%d files)", identifier, resolved, len(files))
        return InstallResult(
            identifier,
            version_range,
            InstallStatus.INSTALLED,
            resolved,
            files=files,
            children=children,
        )

    @staticmethod
    def _validate(identifier: str, manifest: PackageManifest) -> None:
        if manifest.name != identifier:
            raise ManifestNameMismatchError(identifier, manifest.name)

    def _raise_first(self, outcomes: Sequence[object], context: str) -> None:
        errors = [o for o in outcomes if isinstance(o, BaseException)]
        if not errors:
            return
        for extra in errors[1:]:
            self.logger.error("Additional failure while installing %s: %s", context, extra)
        raise errors[0]

    def staging_dir(self, version: PackageVersion, target: Path) -> Path:
        """Extraction directory for one exact package version."""
        root = self.layout.under(target, self.layout.temp_dir)
        return root / package_path(version.identifier) / str(version.version)

    def plan_placement(
        self,
        identifier,
        manifest: PackageManifest,
        entries: Sequence[str],
        target: Path,
    ) -> Dict[Path, str]:
        """Map destination paths to the archive entries copied there.

        A destination claimed by more than one pattern keeps its first entry.
        """
        plan: Dict[Path, str] = {}
        for pattern in manifest.files:
            for entry in match_entries(entries, pattern):
                plan.setdefault(target / entry, entry)

        sections = (
            (manifest.runtime.headers, self.layout.include_dir),
            (manifest.runtime.bin, self.layout.firmware_dir),
        )
        for patterns, directory in sections:
            root = self.layout.under(target, directory)
            for pattern in patterns:
                base = pattern_base(pattern, entries)
                for entry in match_entries(entries, pattern):
                    plan.setdefault(root / relative_to_base(entry, base), entry)

        manifests_root = self.layout.under(target, self.layout.manifests_dir)
        plan.setdefault(
            manifests_root / package_path(identifier) / Constants.MANIFEST_FILE,
            Constants.MANIFEST_FILE,
        )
        return plan

    async def _stage_and_place(
        self,
        version: PackageVersion,
        archive: PackageArchive,
        manifest: PackageManifest,
        target: Path,
        session: _Session,
    ) -> List[Path]:
        staging = self.staging_dir(version, target)
        plan = self.plan_placement(version.identifier, manifest, archive.entries(), target)

        # Concurrent branches installing the same version share one staging directory.
        async with session.lock_for(staging):
            with Timer() as t:
                await asyncio.to_thread(archive.extract_all, staging)
                copies = [
                    asyncio.to_thread(_atomic_copy, staging / entry, destination)
                    for destination, entry in plan.items()
                ]
                outcomes = await asyncio.gather(*copies, return_exceptions=True)
                self._raise_first(outcomes, f"{version.identifier}@{version.version}")

        if is_debug_enabled(logger):
            logger.debug(
                "Placed package files",
                extra=extra_context(
                    event="place",
                    component="installer",
                    action="copy",
                    target=str(version.identifier),
                    version=str(version.version),
                    count=len(plan),
                    duration_ms=t.duration_ms(),
                ),
            )
        return list(plan)
