"""Scoped package identifiers of the form ``@owner/repo``."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# Owner follows GitHub login rules (alphanumerics and single inner hyphens, max 39
# chars); repo allows alphanumerics, '_', '-', '.' up to 100 chars. Lowercase only.
ID_PATTERN = re.compile(
    r"^@(?P<owner>[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9])){0,38})/(?P<repo>[a-z0-9_\-.]{1,100})$"
)


@dataclass(frozen=True)
class ScopedIdentifier:
    """Owner/repo pair naming a package."""

    owner: str
    repo: str

    @classmethod
    def parse(cls, text: str) -> Optional["ScopedIdentifier"]:
        """Decode ``@owner/repo``; returns None when ``text`` does not match the pattern."""
        if not isinstance(text, str):
            return None
        m = ID_PATTERN.fullmatch(text)
        if not m:
            return None
        return cls(owner=m.group("owner"), repo=m.group("repo"))

    def __str__(self) -> str:
        return f"@{self.owner}/{self.repo}"
