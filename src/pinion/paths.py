"""On-disk layout of a pinion home directory.

    ~/.pinion/                                     home
        catalog.toml                               catalog_file
        cache/
            node/                                  node_cache_dir
                index.json                         node_index_file
                index.json.expires                 node_index_expiry_file
        versions/
            node/                                  node_versions_dir
                8.6.0/                             node_version_dir("8.6.0")
                10.0.0/
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pinion.errors import NoHomeDirectoryError

if TYPE_CHECKING:
    from pinion.config import Settings


def default_home() -> Path:
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise NoHomeDirectoryError() from exc
    return home / ".pinion"


@dataclass(frozen=True)
class Layout:
    home: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> Layout:
        if settings.home:
            return cls(Path(settings.home).expanduser())
        return cls(default_home())

    @property
    def catalog_file(self) -> Path:
        return self.home / "catalog.toml"

    @property
    def node_cache_dir(self) -> Path:
        return self.home / "cache" / "node"

    @property
    def node_index_file(self) -> Path:
        return self.node_cache_dir / "index.json"

    @property
    def node_index_expiry_file(self) -> Path:
        return self.node_cache_dir / "index.json.expires"

    @property
    def node_versions_dir(self) -> Path:
        return self.home / "versions" / "node"

    def node_version_dir(self, version: object) -> Path:
        return self.node_versions_dir / str(version)
