"""Exception hierarchy for package resolution and installation.

All errors inherit from PackageError. Resolution, archive and manifest errors
are recovered inside the installer (the affected subtree is skipped with a
warning); TransportError is always surfaced to the caller.
"""


class PackageError(Exception):
    """Base exception for all package errors."""


class ResolutionError(PackageError):
    """Raised when no configured resolver can produce a version for a request."""


class ArchiveError(PackageError):
    """Raised when an artifact cannot be opened as an archive.

    Also covers entries that would escape the extraction root.
    """


class ManifestError(PackageError):
    """Base class for problems with a package's manifest file."""


class ManifestMissingError(ManifestError):
    """Raised when the archive has no manifest at the expected path."""


class ManifestParseError(ManifestError):
    """Raised when the manifest is not valid JSON or has wrongly-typed fields."""


class ManifestNameMismatchError(ManifestError):
    """Raised when the manifest's declared name differs from the requested identifier."""

    def __init__(self, requested: str, declared):
        super().__init__(
            f"manifest declares name {declared!r} but {requested!r} was requested"
        )
        self.requested = requested
        self.declared = declared


class TransportError(PackageError):
    """Raised when a remote source fails for reasons other than absence.

    Covers connection errors, timeouts, rate limiting and unexpected statuses.
    """

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code
