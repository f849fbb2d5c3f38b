"""Provider registry: maps source type names to resolver factories."""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping

from constants import SourceTypes
from packages.identifiers import ScopedIdentifier
from packages.resolver import SourceResolver

from .github import GithubReleaseClient, GithubReleaseSource
from .local import LocalDirectorySource

SourceFactory = Callable[[Mapping[str, Any]], SourceResolver]

SOURCE_FACTORIES: Dict[str, SourceFactory] = {}


def register_source(name: str, factory: SourceFactory) -> None:
    """Register (or replace) the factory building resolvers for source type ``name``."""
    SOURCE_FACTORIES[name] = factory


def _github_factory(options: Mapping[str, Any]) -> SourceResolver:
    client = GithubReleaseClient(base_url=options.get("api_url"))
    return SourceResolver(SourceTypes.GITHUB.value, ScopedIdentifier, GithubReleaseSource(client))


def _local_factory(options: Mapping[str, Any]) -> SourceResolver:
    path = options.get("path")
    if not path:
        raise ValueError("local source requires a 'path'")
    return SourceResolver(SourceTypes.LOCAL.value, ScopedIdentifier, LocalDirectorySource(path))


register_source(SourceTypes.GITHUB.value, _github_factory)
register_source(SourceTypes.LOCAL.value, _local_factory)


def build_resolvers(configs: Iterable[Mapping[str, Any]]) -> List[SourceResolver]:
    """Instantiate resolvers in configuration order.

    Raises:
        ValueError: On an unknown source type or missing options.
    """
    resolvers = []
    for options in configs:
        kind = options.get("type")
        factory = SOURCE_FACTORIES.get(kind)
        if factory is None:
            raise ValueError(f"unknown source type: {kind!r}")
        resolvers.append(factory(options))
    return resolvers
