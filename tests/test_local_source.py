"""Tests for the local-directory source."""

import asyncio

from packages.identifiers import ScopedIdentifier
from packages.installer import InstallStatus, PackageInstaller
from sources import build_resolvers
from sources.local import LocalDirectorySource

IDENT = ScopedIdentifier("acme", "core")


def seed(root, tags, payload=b"zip"):
    directory = root / "acme" / "core"
    directory.mkdir(parents=True, exist_ok=True)
    for tag in tags:
        (directory / f"{tag}.zip").write_bytes(payload)
    return directory


class TestLocalDirectorySource:
    """Test listing and reading artifacts from disk."""

    def test_list_versions(self, tmp_path):
        """Every zip becomes a release named by its stem."""
        seed(tmp_path, ["1.0.0", "1.1.0+build.1"])
        (tmp_path / "acme" / "core" / "notes.txt").write_text("ignored")

        tags = [tag for tag, _ in LocalDirectorySource(tmp_path).list_versions(IDENT)]

        assert sorted(tags) == ["1.0.0", "1.1.0+build.1"]

    def test_unknown_package(self, tmp_path):
        """A missing directory lists nothing."""
        assert LocalDirectorySource(tmp_path).list_versions(IDENT) == []

    def test_latest_prefers_stable(self, tmp_path):
        """The highest stable version is latest even when a newer prerelease exists."""
        seed(tmp_path, ["1.0.0", "1.2.0", "2.0.0-rc.1", "junk"])
        tag, _ = LocalDirectorySource(tmp_path).get_latest(IDENT)
        assert tag == "1.2.0"

    def test_latest_prerelease_only(self, tmp_path):
        """With no stable version the highest prerelease is latest."""
        seed(tmp_path, ["1.0.0-alpha", "1.0.0-beta"])
        tag, _ = LocalDirectorySource(tmp_path).get_latest(IDENT)
        assert tag == "1.0.0-beta"

    def test_latest_none(self, tmp_path):
        """Nothing parseable means no latest."""
        seed(tmp_path, ["nightly"])
        assert LocalDirectorySource(tmp_path).get_latest(IDENT) is None

    def test_fetch_asset(self, tmp_path):
        """The artifact is the file content."""
        seed(tmp_path, ["1.0.0"], payload=b"PK\x03\x04")
        source = LocalDirectorySource(tmp_path)
        _, release = source.list_versions(IDENT)[0]
        assert source.fetch_asset(IDENT, release) == b"PK\x03\x04"

    def test_end_to_end_install(self, tmp_path, make_package):
        """A local mirror drives a full install through the registry."""
        mirror = tmp_path / "mirror"
        seed(mirror, ["1.0.0"], payload=make_package(
            "@acme/core", "1.0.0", {"include/core.h": "c"}, runtime={"headers": ["include"]}
        ))
        resolvers = build_resolvers([{"type": "local", "path": str(mirror)}])
        target = tmp_path / "proj"

        result = asyncio.run(PackageInstaller(resolvers).install("@acme/core", "^1", target))

        assert result.status is InstallStatus.INSTALLED
        assert (target / "include" / "core.h").read_text() == "c"
