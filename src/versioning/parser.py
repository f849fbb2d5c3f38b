"""Token parsing utilities for package requests."""

from typing import Optional, Tuple

from .semver import normalize_range


def tokenize_rightmost_at(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-'@' rule.

    The leading '@' of a scoped identifier is never treated as a separator,
    so "@owner/repo" has no spec and "@owner/repo@^1.2.0" has spec "^1.2.0".
    """
    s = s.strip()
    if "@" not in s[1:]:
        return s, None
    identifier, spec_part = s.rsplit("@", 1)
    identifier = identifier.strip()
    spec = spec_part.strip() or None
    return identifier, spec


def parse_cli_request(token: str, range_arg: Optional[str] = None) -> Tuple[str, str]:
    """Parse the CLI package token and optional range argument.

    An explicit range argument wins over a range embedded in the token.

    Returns:
        Tuple of (identifier, normalized range string).
    """
    identifier, embedded = tokenize_rightmost_at(token)
    return identifier, normalize_range(range_arg if range_arg is not None else embedded)
