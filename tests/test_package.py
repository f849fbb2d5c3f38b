"""Tests for Package / PackageVersion queries over a release source."""

import asyncio

import pytest
import semantic_version

from packages.identifiers import ScopedIdentifier
from packages.package import Package, PackageVersion
from versioning.semver import VersionRange

IDENT = "@acme/motors"


@pytest.fixture
def seeded_source(fake_source):
    """125 base versions, each with prerelease, build and prerelease+build variants."""
    for major in range(5):
        for minor in range(5):
            for patch in range(5):
                base = f"{major}.{minor}.{patch}"
                for tag in (base, f"{base}-beta.1", f"{base}+build.1", f"{base}-beta.1+build.1"):
                    fake_source.add(IDENT, tag, tag.encode())
    return fake_source


@pytest.fixture
def package(seeded_source):
    return Package(ScopedIdentifier.parse(IDENT), seeded_source)


class TestPackageVersionCreate:
    """Test PackageVersion construction."""

    def test_create_parses_tag(self, fake_source):
        """A semver tag yields a version with its raw text preserved."""
        pv = PackageVersion.create(fake_source, "id", "v1.2.3+b.7", None)
        assert str(pv.version) == "1.2.3+b.7"

    def test_create_returns_none_for_bad_tag(self, fake_source):
        """Unparseable tags are dropped silently."""
        assert PackageVersion.create(fake_source, "id", "nightly", None) is None

    def test_download_fetches_every_call(self, fake_source):
        """download() goes to the source each time."""
        fake_source.add(IDENT, "1.0.0", b"payload")
        pkg = Package(ScopedIdentifier.parse(IDENT), fake_source)
        (pv,) = asyncio.run(pkg.get_versions())

        assert asyncio.run(pv.download()) == b"payload"
        assert asyncio.run(pv.download()) == b"payload"
        assert len(fake_source.downloads) == 2


class TestPackageQueries:
    """Test derived queries against the seeded release set."""

    def test_get_versions_keeps_provider_order(self, package):
        """Every release is returned in source order."""
        versions = asyncio.run(package.get_versions())
        assert len(versions) == 500
        assert str(versions[0].version) == "0.0.0"
        assert str(versions[1].version) == "0.0.0-beta.1"

    def test_invalid_tags_skipped(self, fake_source):
        """Releases whose tags do not parse are invisible."""
        fake_source.add(IDENT, "1.0.0").add(IDENT, "snapshot").add(IDENT, "1.1")
        pkg = Package(ScopedIdentifier.parse(IDENT), fake_source)
        assert [str(x.version) for x in asyncio.run(pkg.get_versions())] == ["1.0.0"]

    def test_x_range_matches_ten(self, package):
        """'1.1.x' matches the five releases and their build variants."""
        matches = asyncio.run(package.get_versions_in_range(VersionRange("1.1.x")))
        assert len(matches) == 10
        assert all(not m.version.prerelease for m in matches)

    def test_latest_in_range_prefers_build(self, package):
        """The latest in '1.1.x' is the build-tagged 1.1.4."""
        latest = asyncio.run(package.get_latest_in_range(VersionRange("1.1.x")))
        assert str(latest.version) == "1.1.4+build.1"

    def test_latest_in_range_none_when_empty(self, package):
        """A range outside the release set yields None."""
        assert asyncio.run(package.get_latest_in_range(VersionRange("^9.0.0"))) is None

    def test_in_range_subset_of_all_versions(self, package):
        """Every in-range version is among all versions and satisfies the range."""
        r = VersionRange(">=2.3.0 <3.0.0")
        all_versions = asyncio.run(package.get_versions())
        matches = asyncio.run(package.get_versions_in_range(r))
        assert matches
        for m in matches:
            assert m in all_versions
            assert m.version in r

    def test_get_version_exact_raw(self, package):
        """Exact lookup prefers the candidate whose build matches."""
        found = asyncio.run(package.get_version(semantic_version.Version("2.3.4")))
        assert str(found.version) == "2.3.4"

    def test_get_version_with_build(self, package):
        """A requested build is honoured when present."""
        found = asyncio.run(package.get_version(semantic_version.Version("2.3.4+build.1")))
        assert str(found.version) == "2.3.4+build.1"

    def test_get_version_prerelease(self, package):
        """Prereleases can be looked up exactly."""
        found = asyncio.run(package.get_version(semantic_version.Version("0.4.2-beta.1")))
        assert str(found.version) == "0.4.2-beta.1"

    def test_get_version_missing(self, package):
        """Unknown versions yield None."""
        assert asyncio.run(package.get_version(semantic_version.Version("7.0.0"))) is None

    def test_create_round_trip(self, package):
        """Every listed version can be found again by its own version."""
        for pv in asyncio.run(package.get_versions())[:40]:
            found = asyncio.run(package.get_version(pv.version))
            assert found is not None
            assert str(found.version) == str(pv.version)

    def test_get_latest_is_provider_defined(self, seeded_source, package):
        """get_latest() reports what the provider marks, not the maximum."""
        seeded_source.latest[ScopedIdentifier.parse(IDENT)] = "1.0.0"
        assert str(asyncio.run(package.get_latest()).version) == "1.0.0"

    def test_get_latest_none(self, package):
        """No provider-marked latest means None."""
        assert asyncio.run(package.get_latest()) is None
