from __future__ import annotations

from pydantic import BaseModel, TypeAdapter

from pinion.versions import Version


class IndexEntry(BaseModel):
    """Single entry in the public index.json. Other upstream fields are ignored."""

    version: Version
    files: list[str] = []


INDEX_ADAPTER: TypeAdapter[list[IndexEntry]] = TypeAdapter(list[IndexEntry])
