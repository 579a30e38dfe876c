from __future__ import annotations

from pinion.models.catalog import CatalogDocument, NodeCatalogDocument
from pinion.models.index import INDEX_ADAPTER, IndexEntry
from pinion.models.plugin import (
    RESOLVE_RESPONSE_ADAPTER,
    ResolveResponse,
    StreamResponse,
    UrlResponse,
)

__all__ = [
    # catalog
    "CatalogDocument",
    "NodeCatalogDocument",
    # index
    "IndexEntry",
    "INDEX_ADAPTER",
    # plugin
    "ResolveResponse",
    "UrlResponse",
    "StreamResponse",
    "RESOLVE_RESPONSE_ADAPTER",
]
