"""Process-wide state, built once at startup and passed to the operations."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pinion.cache import IndexCache
from pinion.catalog import LazyCatalog
from pinion.config import Settings
from pinion.fetcher import IndexFetcher, build_http_client
from pinion.host import NodePlatform
from pinion.installer import TarballUnpacker
from pinion.logging_config import configure_logging
from pinion.paths import Layout
from pinion.plugin import plugin_from_settings
from pinion.resolver import NodeResolver
from pinion.versions import Version, VersionRequirement

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx
    from rich.console import Console

    from pinion.installer import Installed, Unpacker


@dataclass
class AppState:
    settings: Settings
    layout: Layout
    http_client: httpx.AsyncClient
    catalog: LazyCatalog
    resolver: NodeResolver

    async def activate_node(self, requirement: str) -> Version:
        matching = VersionRequirement.parse(requirement)
        return await self.catalog.get().activate_node(matching, self.resolver)

    async def install_node(self, requirement: str) -> Installed:
        matching = VersionRequirement.parse(requirement)
        return await self.catalog.get().install_node(matching, self.resolver)

    def uninstall_node(self, version: str) -> None:
        self.catalog.get().uninstall_node(Version.parse(version))

    def resolve_local_node(self, requirement: str) -> Version | None:
        return self.catalog.get().node.resolve_local(VersionRequirement.parse(requirement))


def build_app_state(
    settings: Settings,
    http_client: httpx.AsyncClient,
    *,
    layout: Layout | None = None,
    platform: NodePlatform | None = None,
    unpacker: Unpacker | None = None,
    console: Console | None = None,
) -> AppState:
    layout = layout or Layout.from_settings(settings)
    unpacker = unpacker or TarballUnpacker(http_client, layout)

    plugin = None
    if settings.node.resolve is not None:
        plugin = plugin_from_settings(
            settings.node.resolve, timeout_seconds=settings.plugin.timeout_seconds
        )

    resolver = NodeResolver(
        settings=settings.node,
        cache=IndexCache(layout.node_index_file, layout.node_index_expiry_file),
        fetcher=IndexFetcher(http_client, settings.fetcher, settings.cache, console=console),
        unpacker=unpacker,
        platform=platform or NodePlatform.current(),
        plugin=plugin,
    )
    return AppState(
        settings=settings,
        layout=layout,
        http_client=http_client,
        catalog=LazyCatalog(layout),
        resolver=resolver,
    )


@contextlib.asynccontextmanager
async def open_app_state(settings: Settings | None = None) -> AsyncIterator[AppState]:
    """Configure logging, open the HTTP client and yield a wired ``AppState``."""
    settings = settings or Settings()
    configure_logging(settings.logging)
    async with build_http_client(settings.fetcher) as client:
        yield build_app_state(settings, client)
