"""Integration test fixtures.

Provides a fully wired AppState rooted in a temporary pinion home. Network
traffic goes through a real httpx client; tests mock it with respx.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from pinion.config import Settings
from pinion.host import NodePlatform
from pinion.state import build_app_state

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from pinion.state import AppState


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        home=str(tmp_path / "pinion-home"),
        fetcher={"show_progress": False},  # type: ignore[arg-type]
    )


@pytest.fixture()
async def app_state(settings: Settings) -> AsyncIterator[AppState]:
    """AppState for a linux-x64 host, with the real tarball unpacker."""
    async with httpx.AsyncClient() as client:
        yield build_app_state(settings, client, platform=NodePlatform(os="linux", arch="x64"))
