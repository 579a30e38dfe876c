"""Unit-specific fixtures (no I/O beyond a temporary directory)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pinion.cache import IndexCache

if TYPE_CHECKING:
    from pinion.paths import Layout


@pytest.fixture()
def index_cache(layout: Layout) -> IndexCache:
    """Index cache rooted in the temporary pinion home."""
    return IndexCache(layout.node_index_file, layout.node_index_expiry_file)
