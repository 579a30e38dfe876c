"""The local catalog of installed tool versions.

The catalog lives in ``catalog.toml`` in the pinion home directory and is
rewritten in full after every successful mutation. It is loaded lazily, once
per process, through ``LazyCatalog``.

Versions enter the catalog only when an install actually created their
directory; the catalog is not re-validated against the disk on load.
"""

from __future__ import annotations

import bisect
import shutil
import tomllib
from typing import TYPE_CHECKING, Any

import structlog
import tomli_w
from pydantic import ValidationError

from pinion.errors import CatalogDesyncError, CatalogFileError
from pinion.installer import InstalledNow
from pinion.models.catalog import CatalogDocument, NodeCatalogDocument
from pinion.resolver import first_match

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from pinion.installer import Installed
    from pinion.paths import Layout
    from pinion.resolver import NodeResolver
    from pinion.versions import Version, VersionRequirement

log = structlog.get_logger()


class NodeCatalog:
    """Installed Node versions (sorted, unique) and the activated one."""

    def __init__(self, activated: Version | None = None, versions: Iterable[Version] = ()) -> None:
        self.activated = activated
        self._versions: list[Version] = sorted(set(versions))

    @property
    def versions(self) -> tuple[Version, ...]:
        return tuple(self._versions)

    def contains(self, version: Version) -> bool:
        index = bisect.bisect_left(self._versions, version)
        return index < len(self._versions) and self._versions[index] == version

    def add(self, version: Version) -> None:
        if not self.contains(version):
            bisect.insort(self._versions, version)

    def remove(self, version: Version) -> None:
        if self.contains(version):
            self._versions.remove(version)

    def resolve_local(self, matching: VersionRequirement) -> Version | None:
        return first_match(matching, self._versions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeCatalog):
            return NotImplemented
        return self.activated == other.activated and self._versions == other._versions

    def __repr__(self) -> str:
        versions = ", ".join(str(version) for version in self._versions)
        return f"NodeCatalog(activated={self.activated}, versions=[{versions}])"


class Catalog:
    """The catalog of tool versions available locally."""

    def __init__(
        self, node: NodeCatalog, layout: Layout, others: dict[str, Any] | None = None
    ) -> None:
        self.node = node
        self._layout = layout
        # Tables of other tools, preserved across rewrites.
        self._others = dict(others or {})

    @property
    def path(self) -> Path:
        return self._layout.catalog_file

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, layout: Layout) -> Catalog:
        """Read the user's catalog file, creating an empty one if missing."""
        path = layout.catalog_file
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=True)
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CatalogFileError(f"Failed to read catalog {path}") from exc
        catalog = cls.from_toml(text, layout)
        log.debug("catalog_loaded", path=str(path), versions=len(catalog.node.versions))
        return catalog

    @classmethod
    def from_toml(cls, text: str, layout: Layout) -> Catalog:
        try:
            document = CatalogDocument.model_validate(tomllib.loads(text))
        except (tomllib.TOMLDecodeError, ValidationError) as exc:
            raise CatalogFileError(f"Malformed catalog {layout.catalog_file}: {exc}") from exc
        node = NodeCatalog(document.node.activated, document.node.versions)
        return cls(node, layout, document.model_extra)

    def to_toml(self) -> str:
        node = NodeCatalogDocument(activated=self.node.activated, versions=list(self.node.versions))
        data = CatalogDocument(node=node).model_dump(mode="json", exclude_none=True)
        data.update(self._others)
        return tomli_w.dumps(data)

    def save(self) -> None:
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.to_toml(), encoding="utf-8")
        except OSError as exc:
            raise CatalogFileError(f"Failed to write catalog {path}") from exc
        log.debug("catalog_saved", path=str(path))

    # ------------------------------------------------------------------
    # Node
    # ------------------------------------------------------------------

    async def activate_node(self, matching: VersionRequirement, resolver: NodeResolver) -> Version:
        """Install a version matching *matching* if needed and make it the active one."""
        installed = await self.install_node(matching, resolver)
        version = installed.version

        if self.node.activated != version:
            self.node.activated = version
            self.save()
            log.info("node_activated", version=str(version))

        return version

    async def install_node(self, matching: VersionRequirement, resolver: NodeResolver) -> Installed:
        installer = await resolver.resolve_remote(matching)
        installed = await installer.install(self.node)

        if isinstance(installed, InstalledNow):
            self.node.add(installed.version)
            self.save()

        return installed

    def uninstall_node(self, version: Version) -> None:
        """Remove *version* from disk and from the catalog. No-op when not installed."""
        if not self.node.contains(version):
            return

        home = self._layout.node_version_dir(version)
        if not home.is_dir():
            raise CatalogDesyncError(home)

        try:
            shutil.rmtree(home)
        except OSError as exc:
            raise CatalogFileError(f"Failed to remove {home}") from exc

        self.node.remove(version)
        self.save()
        log.info("node_uninstalled", version=str(version))


class LazyCatalog:
    """Holds the catalog, loading it from disk on first access.

    A failed load leaves the holder unloaded so the next access tries again.
    """

    def __init__(self, layout: Layout) -> None:
        self._layout = layout
        self._catalog: Catalog | None = None

    @property
    def loaded(self) -> bool:
        return self._catalog is not None

    def get(self) -> Catalog:
        if self._catalog is None:
            self._catalog = Catalog.load(self._layout)
        return self._catalog
