"""The public Node version index, as parsed from index.json."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import ValidationError

from pinion.errors import IndexParseError
from pinion.models.index import INDEX_ADAPTER

if TYPE_CHECKING:
    from pinion.versions import Version


@dataclass(frozen=True)
class VersionData:
    """The set of archives the public server publishes for one version."""

    files: frozenset[str] = frozenset()


@dataclass
class Index:
    """Versions published upstream, keyed and ordered ascending by version."""

    entries: dict[Version, VersionData] = field(default_factory=dict)

    def versions(self) -> list[Version]:
        return list(self.entries)

    def versions_for(self, platform_key: str) -> list[Version]:
        """Versions with an archive published for *platform_key* (e.g. ``linux-x64``)."""
        return [version for version, data in self.entries.items() if platform_key in data.files]


def parse_index(text: str) -> Index:
    """Parse an index.json document. Duplicate versions merge their file sets."""
    try:
        entries = INDEX_ADAPTER.validate_json(text)
    except ValidationError as exc:
        raise IndexParseError(f"Malformed version index: {exc.error_count()} error(s)") from exc

    merged: dict[Version, set[str]] = {}
    for entry in entries:
        merged.setdefault(entry.version, set()).update(entry.files)

    return Index({version: VersionData(frozenset(merged[version])) for version in sorted(merged)})
