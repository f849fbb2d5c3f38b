"""Glob matching over archive entry names."""
from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import PurePosixPath
from typing import Iterable, List

_GLOB_CHARS = set("*?[")


def _normalize(pattern: str) -> str:
    pattern = pattern.strip()
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern.lstrip("/").rstrip("/")


def _has_glob(segment: str) -> bool:
    return any(ch in _GLOB_CHARS for ch in segment)


def _globstar_variants(pattern: str) -> List[str]:
    """``pattern`` plus every form with some ``**/`` segments collapsed to nothing."""
    variants = [pattern]
    pending = [pattern]
    while pending:
        current = pending.pop()
        start = 0
        while True:
            index = current.find("**/", start)
            if index < 0:
                break
            if index == 0 or current[index - 1] == "/":
                collapsed = current[:index] + current[index + 3:]
                if collapsed and collapsed not in variants:
                    variants.append(collapsed)
                    pending.append(collapsed)
            start = index + 1
    return variants


def _matches(entry: str, pattern: str) -> bool:
    candidates = _globstar_variants(pattern)
    parts = PurePosixPath(entry).parts
    # The entry itself or any directory containing it may match.
    prefixes = ["/".join(parts[:i]) for i in range(len(parts), 0, -1)]
    return any(fnmatchcase(prefix, pat) for pat in candidates for prefix in prefixes)


def match_entries(entries: Iterable[str], pattern: str) -> List[str]:
    """Entries matched by ``pattern``, in input order.

    A pattern naming a directory (literally or by glob) matches every entry
    below it. ``*`` also crosses directory separators, and every ``**/``
    segment may match zero directories.
    """
    pattern = _normalize(pattern)
    if not pattern:
        return []
    return [entry for entry in entries if _matches(entry, pattern)]


def pattern_base(pattern: str, entries: Iterable[str]) -> str:
    """Literal directory prefix of ``pattern`` that matched entries are placed relative to.

    The base is the leading run of glob-free segments. A fully literal pattern
    naming a single file has that file's parent directory as its base.
    """
    pattern = _normalize(pattern)
    segments = pattern.split("/") if pattern else []
    literal = []
    for segment in segments:
        if _has_glob(segment):
            break
        literal.append(segment)
    else:
        if pattern in set(entries):
            literal = literal[:-1]
    return "/".join(literal)


def relative_to_base(entry: str, base: str) -> str:
    """Path of ``entry`` below ``base``."""
    if not base:
        return entry
    return str(PurePosixPath(entry).relative_to(base))
