"""Package manifest (``package.json``) model and parser."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import ManifestParseError


@dataclass(frozen=True)
class RuntimeFiles:
    """Runtime artifacts declared by a package.

    Attributes:
        bin: Glob patterns for firmware binaries.
        headers: Glob patterns for header files.
    """

    bin: Tuple[str, ...] = ()
    headers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PackageManifest:
    """Typed view of the fields the installer consumes."""

    name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)
    peer_dependencies: Dict[str, str] = field(default_factory=dict)
    engines: Dict[str, str] = field(default_factory=dict)
    files: Tuple[str, ...] = ()
    runtime: RuntimeFiles = field(default_factory=RuntimeFiles)

    def dependency_entries(self) -> List[Tuple[str, str]]:
        """All (identifier, range) pairs across dependency sections.

        Duplicates across sections are kept; each is installed on its own.
        """
        entries: List[Tuple[str, str]] = []
        for section in (self.dependencies, self.peer_dependencies, self.engines):
            entries.extend(section.items())
        return entries

    @classmethod
    def from_dict(cls, data: Any) -> "PackageManifest":
        """Build a manifest from decoded JSON.

        Raises:
            ManifestParseError: If ``data`` is not an object or a known field has the wrong type.
        """
        if not isinstance(data, dict):
            raise ManifestParseError("manifest must be a JSON object")

        runtime = data.get("runtime")
        if runtime is None:
            runtime = {}
        if not isinstance(runtime, dict):
            raise ManifestParseError("'runtime' must be an object")

        return cls(
            name=_optional_str(data, "name"),
            version=_optional_str(data, "version"),
            description=_optional_str(data, "description"),
            type=_optional_str(data, "type"),
            dependencies=_string_map(data, "dependencies"),
            peer_dependencies=_string_map(data, "peerDependencies"),
            engines=_string_map(data, "engines"),
            files=_string_list(data, "files"),
            runtime=RuntimeFiles(
                bin=_string_list(runtime, "bin", "runtime.bin"),
                headers=_string_list(runtime, "headers", "runtime.headers"),
            ),
        )


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ManifestParseError(f"'{key}' must be a string")


def _string_map(data: Dict[str, Any], key: str) -> Dict[str, str]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestParseError(f"'{key}' must be an object")
    result = {}
    for name, spec in value.items():
        if spec is None:
            continue
        if not isinstance(spec, str):
            raise ManifestParseError(f"'{key}.{name}' must be a version range string")
        result[name] = spec
    return result


def _string_list(data: Dict[str, Any], key: str, label: Optional[str] = None) -> Tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ManifestParseError(f"'{label or key}' must be a list of strings")
    return tuple(value)


def parse_manifest(raw: bytes) -> PackageManifest:
    """Decode manifest bytes.

    Raises:
        ManifestParseError: On invalid UTF-8, invalid JSON or an invalid shape.
    """
    try:
        data = json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestParseError(f"manifest is not valid JSON: {exc}") from exc
    return PackageManifest.from_dict(data)
