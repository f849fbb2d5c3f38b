"""Capability interfaces implemented by package providers.

A provider is any pair of ``IdentifierCodec`` + ``ReleaseSource``; no subclassing
of the core ``Package``/``PackageVersion`` types is involved. Source methods are
synchronous and may block; the core always calls them on a worker thread.
"""
from __future__ import annotations

from typing import Any, List, Optional, Protocol, Tuple, TypeVar

IdT = TypeVar("IdT")

# (raw version tag, provider-specific release record)
ReleaseRecord = Tuple[str, Any]


class ReleaseSource(Protocol[IdT]):
    """Remote (or local) store of released package artifacts."""

    def list_versions(self, identifier: IdT) -> List[ReleaseRecord]:
        """All releases of ``identifier``; an empty list when the package is unknown.

        Raises:
            TransportError: On failures other than absence.
        """

    def get_latest(self, identifier: IdT) -> Optional[ReleaseRecord]:
        """The release the provider considers latest, if any."""

    def fetch_asset(self, identifier: IdT, release: Any) -> bytes:
        """Download the artifact bytes for ``release``.

        Raises:
            TransportError: When the artifact cannot be fetched.
        """


class IdentifierCodec(Protocol[IdT]):
    """Decodes identifier strings in a provider's namespace."""

    def parse(self, text: str) -> Optional[IdT]:
        """Return the decoded identifier, or None when ``text`` is not valid syntax."""
