"""Shared fixtures: in-memory zip artifacts and an in-memory release source."""

import io
import json
import zipfile

import pytest

from packages.errors import TransportError
from packages.identifiers import ScopedIdentifier
from packages.resolver import SourceResolver


def build_zip(files):
    """Zip ``{entry name: str | bytes}`` into bytes."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            zf.writestr(name, content)
    return buffer.getvalue()


def build_package(name, version="1.0.0", entries=None, **manifest):
    """Zip a package whose manifest declares ``name``/``version`` plus ``manifest`` fields.

    ``entries`` maps extra archive paths to their content.
    """
    data = {"name": name, "version": version}
    data.update(manifest)
    files = {"package.json": json.dumps(data)}
    files.update(entries or {})
    return build_zip(files)


class FakeSource:
    """ReleaseSource serving artifacts from memory and recording downloads."""

    def __init__(self):
        self.releases = {}
        self.latest = {}
        self.downloads = []
        self.failing = set()
        self.listings = []

    def add(self, identifier, tag, payload=b""):
        key = ScopedIdentifier.parse(identifier)
        self.releases.setdefault(key, []).append((tag, payload))
        return self

    def publish(self, name, version="1.0.0", entries=None, **manifest):
        """Add a release whose artifact is a well-formed package."""
        return self.add(name, version, build_package(name, version, entries, **manifest))

    def _records(self, identifier):
        return [(tag, (tag, payload)) for tag, payload in self.releases.get(identifier, [])]

    def list_versions(self, identifier):
        self.listings.append(str(identifier))
        return self._records(identifier)

    def get_latest(self, identifier):
        tag = self.latest.get(identifier)
        if tag is None:
            return None
        for record in self._records(identifier):
            if record[0] == tag:
                return record
        return None

    def fetch_asset(self, identifier, release):
        tag, payload = release
        self.downloads.append((str(identifier), tag))
        if str(identifier) in self.failing:
            raise TransportError(f"simulated outage for {identifier}", status_code=503)
        return payload


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def make_resolver():
    def _make(source, name="fake"):
        return SourceResolver(name, ScopedIdentifier, source)
    return _make


@pytest.fixture
def make_package():
    return build_package


@pytest.fixture
def make_zip():
    return build_zip


@pytest.fixture
def new_source():
    """Factory for additional independent sources."""
    return FakeSource
