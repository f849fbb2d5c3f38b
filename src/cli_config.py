"""Install configuration: defaults < config file < CLI flags.

Config files are YAML (``.yml``/``.yaml``, or anything else) or JSON (``.json``).
Example::

    target: ./my-robot
    paths:
      include: include
      firmware: firmware
    sources:
      - type: local
        path: ~/firmware-mirror
      - type: github
    max_workers: 8
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from constants import Constants, SourceTypes
from packages.installer import InstallLayout

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or has an invalid shape."""


def _default_sources() -> List[Dict[str, Any]]:
    return [{"type": SourceTypes.GITHUB.value}]


@dataclass
class InstallConfig:
    """Resolved runtime configuration for one CLI invocation."""

    target: str = "."
    include_dir: str = Constants.DEFAULT_INCLUDE_DIR
    firmware_dir: str = Constants.DEFAULT_FIRMWARE_DIR
    temp_dir: str = Constants.DEFAULT_TEMP_DIR
    manifests_dir: str = Constants.DEFAULT_MANIFESTS_DIR
    sources: List[Dict[str, Any]] = field(default_factory=_default_sources)
    max_workers: int = Constants.DEFAULT_MAX_WORKERS
    dedupe: bool = False
    log_level: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InstallConfig":
        """Build a config from a decoded mapping; unknown keys are ignored.

        Raises:
            ConfigError: If a known key has the wrong type.
        """
        config = cls()
        if not isinstance(data, dict):
            raise ConfigError("configuration root must be a mapping")

        if "target" in data:
            config.target = _expect_str(data["target"], "target")

        paths = data.get("paths") or {}
        if not isinstance(paths, dict):
            raise ConfigError("'paths' must be a mapping")
        for key, attr in (
            ("include", "include_dir"),
            ("firmware", "firmware_dir"),
            ("temp", "temp_dir"),
            ("manifests", "manifests_dir"),
        ):
            if paths.get(key) is not None:
                setattr(config, attr, _expect_str(paths[key], f"paths.{key}"))

        if "sources" in data:
            config.sources = _parse_sources(data["sources"])

        if data.get("max_workers") is not None:
            workers = data["max_workers"]
            if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
                raise ConfigError("'max_workers' must be a positive integer")
            config.max_workers = workers

        if data.get("dedupe") is not None:
            if not isinstance(data["dedupe"], bool):
                raise ConfigError("'dedupe' must be a boolean")
            config.dedupe = data["dedupe"]

        if data.get("log_level") is not None:
            config.log_level = _expect_str(data["log_level"], "log_level").upper()

        return config

    @classmethod
    def from_file(cls, path: Optional[str]) -> "InstallConfig":
        """Load configuration from ``path``.

        A missing file logs a warning and yields the defaults.

        Raises:
            ConfigError: If the file cannot be read or parsed.
        """
        if not path:
            return cls()
        if not os.path.isfile(path):
            logger.warning("Config file not found: %s", path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as fh:
                if path.lower().endswith(".json"):
                    data = json.load(fh)
                else:
                    data = yaml.safe_load(fh)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to load config {path}: {exc}") from exc

        logger.debug("Loaded config from %s", path)
        return cls.from_dict(data or {})

    def apply_args(self, args) -> "InstallConfig":
        """Apply CLI overrides (highest precedence) in place.

        ``--source`` replaces the configured source list. ``--local-root``
        supplies the path for ``--source local``; given alone it prepends a
        local source to the configured ones.

        Raises:
            ConfigError: If ``--source local`` is requested without a root.
        """
        if getattr(args, "TARGET", None):
            self.target = args.TARGET
        if getattr(args, "INCLUDE_DIR", None):
            self.include_dir = args.INCLUDE_DIR
        if getattr(args, "FIRMWARE_DIR", None):
            self.firmware_dir = args.FIRMWARE_DIR
        if getattr(args, "TEMP_DIR", None):
            self.temp_dir = args.TEMP_DIR
        if getattr(args, "MANIFESTS_DIR", None):
            self.manifests_dir = args.MANIFESTS_DIR
        if getattr(args, "MAX_WORKERS", None) is not None:
            if args.MAX_WORKERS < 1:
                raise ConfigError("--max-workers must be a positive integer")
            self.max_workers = args.MAX_WORKERS
        if getattr(args, "DEDUPE", False):
            self.dedupe = True
        if getattr(args, "LOG_LEVEL", None):
            self.log_level = args.LOG_LEVEL

        local_root = getattr(args, "LOCAL_ROOT", None)
        cli_sources = getattr(args, "SOURCES", None)
        if cli_sources:
            sources = []
            for kind in cli_sources:
                if kind == SourceTypes.LOCAL.value:
                    if not local_root:
                        raise ConfigError("--source local requires --local-root")
                    sources.append({"type": kind, "path": local_root})
                else:
                    sources.append({"type": kind})
            self.sources = sources
        elif local_root:
            self.sources = [{"type": SourceTypes.LOCAL.value, "path": local_root}] + self.sources
        return self

    def layout(self) -> InstallLayout:
        """Directory layout handed to the installer."""
        return InstallLayout(
            include_dir=self.include_dir,
            firmware_dir=self.firmware_dir,
            temp_dir=self.temp_dir,
            manifests_dir=self.manifests_dir,
        )


def _expect_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def _parse_sources(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        raise ConfigError("'sources' must be a list")
    sources = []
    for index, entry in enumerate(value):
        if isinstance(entry, str):
            entry = {"type": entry}
        if not isinstance(entry, dict) or not isinstance(entry.get("type"), str):
            raise ConfigError(f"'sources[{index}]' must be a mapping with a 'type'")
        kind = entry["type"].lower()
        if kind not in Constants.SUPPORTED_SOURCES:
            raise ConfigError(f"'sources[{index}]': unsupported source type {entry['type']!r}")
        if kind == SourceTypes.LOCAL.value:
            if not isinstance(entry.get("path"), str):
                raise ConfigError(f"'sources[{index}]': local source requires a 'path'")
            entry = dict(entry, path=os.path.expanduser(entry["path"]))
        sources.append(dict(entry, type=kind))
    return sources
