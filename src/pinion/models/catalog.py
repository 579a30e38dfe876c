from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_serializer

from pinion.versions import Version


class NodeCatalogDocument(BaseModel):
    """The ``[node]`` table of catalog.toml."""

    model_config = ConfigDict(extra="forbid")

    activated: Version | None = None
    versions: list[Version] = []

    @field_serializer("versions")
    def serialize_versions(self, versions: list[Version]) -> list[str]:
        return [str(version) for version in sorted(set(versions))]


class CatalogDocument(BaseModel):
    """Top level of catalog.toml: one table per tool.

    Tables for tools other than node are kept as-is and written back.
    """

    model_config = ConfigDict(extra="allow")

    node: NodeCatalogDocument = NodeCatalogDocument()
