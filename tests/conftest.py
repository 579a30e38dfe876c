"""Shared fixtures: a temporary pinion home, a sample index, fake collaborators."""

from __future__ import annotations

import io
import json
import tarfile
from typing import TYPE_CHECKING

import pytest

from pinion.paths import Layout

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from pinion.versions import Version

_ALL_PLATFORMS = ["linux-x64", "linux-arm64", "osx-x64-tar", "osx-arm64-tar", "win-x64-zip"]


class FakeUnpacker:
    """Records unpack calls and creates an empty install directory."""

    def __init__(self, layout: Layout) -> None:
        self.layout = layout
        self.calls: list[tuple[str, Version]] = []

    async def unpack(self, url: str, version: Version) -> Path:
        self.calls.append((url, version))
        home = self.layout.node_version_dir(version)
        (home / "bin").mkdir(parents=True)
        return home


@pytest.fixture()
def layout(tmp_path: Path) -> Layout:
    return Layout(tmp_path / "pinion-home")


@pytest.fixture()
def fake_unpacker(layout: Layout) -> FakeUnpacker:
    return FakeUnpacker(layout)


@pytest.fixture()
def index_body() -> str:
    """Public index with 1.0.0, 1.2.0 and 2.0.0 for every platform.

    2.1.0 only publishes sources, so no platform can install it.
    """
    entries = [
        {"version": "v2.1.0", "date": "2018-06-01", "files": ["headers", "src"], "lts": False},
        {"version": "v2.0.0", "date": "2018-04-24", "files": _ALL_PLATFORMS, "lts": False},
        {"version": "v1.2.0", "date": "2017-10-31", "files": _ALL_PLATFORMS, "lts": "Carbon"},
        {"version": "v1.0.0", "date": "2017-05-30", "files": _ALL_PLATFORMS, "lts": False},
    ]
    return json.dumps(entries)


@pytest.fixture()
def make_tarball() -> Callable[[str], bytes]:
    """Build a gzipped Node-style archive for a version, wrapped in one top-level dir."""

    def build(version: str, platform: str = "linux-x64") -> bytes:
        buffer = io.BytesIO()
        data = b"#!/bin/sh\necho node\n"
        with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
            info = tarfile.TarInfo(f"node-v{version}-{platform}/bin/node")
            info.size = len(data)
            info.mode = 0o755
            tf.addfile(info, io.BytesIO(data))
        return buffer.getvalue()

    return build
