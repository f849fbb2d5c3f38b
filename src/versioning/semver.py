"""Semantic version parsing, ordering and npm-style range matching.

Thin layer over ``semantic_version``. Ordering is computed from an explicit
precedence key (major, minor, patch, prerelease) so build metadata never
participates in comparisons, and a separate selection key breaks ties between
precedence-equal versions deterministically.
"""
from __future__ import annotations

import re
from typing import Optional, Tuple

import semantic_version

# Tags such as "v1.2.3" or "=1.2.3" are accepted; the prefix is not part of the version.
_TAG_PREFIX_RE = re.compile(r"^\s*[=v]?")

PrecedenceKey = Tuple[int, int, int, Tuple]


def parse_version(tag: str) -> Optional[semantic_version.Version]:
    """Parse a release tag into a semantic version.

    Args:
        tag: Raw tag text, e.g. "v0.5.0" or "1.1.4+build.1".

    Returns:
        The parsed version, or None when the tag is not a semantic version.
    """
    if not isinstance(tag, str):
        return None
    text = _TAG_PREFIX_RE.sub("", tag).strip()
    try:
        return semantic_version.Version(text)
    except ValueError:
        return None


def _identifier_key(identifier: str) -> Tuple[int, object]:
    # Numeric identifiers sort below alphanumeric ones (SemVer 2.0.0 section 11.4).
    if identifier.isdigit():
        return (0, int(identifier))
    return (1, identifier)


def precedence_key(version: semantic_version.Version) -> PrecedenceKey:
    """Total-order key excluding build metadata.

    A release sorts above every prerelease of the same major.minor.patch.
    """
    if version.prerelease:
        pre = (0, tuple(_identifier_key(part) for part in version.prerelease))
    else:
        pre = (1, ())
    return (version.major, version.minor, version.patch, pre)


def selection_key(version: semantic_version.Version) -> Tuple[PrecedenceKey, Tuple[str, ...]]:
    """Precedence key with a lexical build-metadata tie-break.

    Among precedence-equal versions the one with the lexically greatest build
    identifiers wins; no build metadata sorts lowest.
    """
    return precedence_key(version), tuple(version.build or ())


def same_precedence(a: semantic_version.Version, b: semantic_version.Version) -> bool:
    """Semantic-version equality: build metadata is ignored."""
    return precedence_key(a) == precedence_key(b)


def strip_build(version: semantic_version.Version) -> semantic_version.Version:
    """Return ``version`` without its build metadata."""
    text = f"{version.major}.{version.minor}.{version.patch}"
    if version.prerelease:
        text += "-" + ".".join(version.prerelease)
    return semantic_version.Version(text)


def normalize_range(raw: Optional[str]) -> str:
    """Map empty and 'latest' range strings onto the match-all range."""
    if raw is None:
        return "*"
    text = raw.strip()
    if not text or text.lower() == "latest":
        return "*"
    return text


class VersionRange:
    """Predicate over semantic versions using npm range syntax.

    Prereleases only satisfy a range that names a prerelease of the same
    major.minor.patch, matching npm semantics. Build metadata is ignored.
    """

    def __init__(self, raw: str):
        """Parse ``raw``.

        Raises:
            ValueError: If the text is not a valid npm range.
        """
        self.raw = raw
        self._spec = semantic_version.NpmSpec(normalize_range(raw))

    @classmethod
    def exact(cls, version: semantic_version.Version) -> "VersionRange":
        """Point range matching every version precedence-equal to ``version``."""
        return cls(str(strip_build(version)))

    def __contains__(self, version: semantic_version.Version) -> bool:
        return self._spec.match(strip_build(version))

    def __repr__(self) -> str:
        return f"VersionRange({self.raw!r})"

    def __str__(self) -> str:
        return self.raw
