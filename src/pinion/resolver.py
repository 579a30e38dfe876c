"""Version resolution.

Local and remote resolution share one rule: scan candidates from the highest
version down and take the first that satisfies the requirement.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pinion.errors import NoVersionFoundError
from pinion.index import parse_index
from pinion.installer import Installer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pinion.cache import IndexCache
    from pinion.config import NodeSettings
    from pinion.fetcher import IndexFetcher
    from pinion.host import NodePlatform
    from pinion.index import Index
    from pinion.installer import Unpacker
    from pinion.plugin import ResolvePlugin
    from pinion.versions import Version, VersionRequirement

log = structlog.get_logger()


def first_match(matching: VersionRequirement, versions: Sequence[Version]) -> Version | None:
    """Highest version in *versions* (sorted ascending) satisfying *matching*."""
    return next((version for version in reversed(versions) if matching.matches(version)), None)


class NodeResolver:
    """Resolves Node requirements to installers, via a plugin or the public index."""

    def __init__(
        self,
        *,
        settings: NodeSettings,
        cache: IndexCache,
        fetcher: IndexFetcher,
        unpacker: Unpacker,
        platform: NodePlatform,
        plugin: ResolvePlugin | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self._fetcher = fetcher
        self._unpacker = unpacker
        self._platform = platform
        self._plugin = plugin

    async def resolve_remote(self, matching: VersionRequirement) -> Installer:
        if self._plugin is not None:
            return await self._plugin.resolve(matching, self._unpacker)
        return await self.resolve_public(matching)

    async def resolve_public(self, matching: VersionRequirement) -> Installer:
        index = await self.load_index()
        if self._settings.filter_platform:
            candidates = index.versions_for(self._platform.index_key)
        else:
            candidates = index.versions()

        version = first_match(matching, candidates)
        if version is None:
            raise NoVersionFoundError(matching)

        log.info("node_version_resolved", requirement=str(matching), version=str(version))
        return Installer.public(
            version,
            dist_url=self._settings.dist_url,
            platform=self._platform,
            unpacker=self._unpacker,
        )

    async def load_index(self) -> Index:
        """The cached index while fresh, otherwise a freshly fetched one."""
        body = self._cache.read_fresh()
        if body is not None:
            return parse_index(body)

        fetched = await self._fetcher.fetch(self._settings.index_url)
        index = parse_index(fetched.body)
        self._cache.store(fetched.body, fetched.expires_at)
        return index
