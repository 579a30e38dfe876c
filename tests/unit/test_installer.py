"""Unit tests for pinion.installer."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import pytest
import respx

from pinion.catalog import NodeCatalog
from pinion.errors import InstallError
from pinion.host import NodePlatform
from pinion.installer import AlreadyInstalled, Installer, InstalledNow, TarballUnpacker
from pinion.versions import Version

if TYPE_CHECKING:
    from collections.abc import Callable

    from pinion.paths import Layout
    from tests.conftest import FakeUnpacker

ARCHIVE_URL = "https://nodejs.org/dist/v10.4.1/node-v10.4.1-linux-x64.tar.gz"
V10 = Version.parse("10.4.1")


# ---------------------------------------------------------------------------
# Installer
# ---------------------------------------------------------------------------


class TestInstaller:
    def test_public_url(self, fake_unpacker: FakeUnpacker) -> None:
        installer = Installer.public(
            V10,
            dist_url="https://nodejs.org/dist/",
            platform=NodePlatform(os="linux", arch="x64"),
            unpacker=fake_unpacker,
        )
        assert installer.url == ARCHIVE_URL

    def test_public_url_windows(self, fake_unpacker: FakeUnpacker) -> None:
        installer = Installer.public(
            V10,
            dist_url="https://mirror.example.com/node",
            platform=NodePlatform(os="win", arch="x64"),
            unpacker=fake_unpacker,
        )
        assert installer.url == "https://mirror.example.com/node/v10.4.1/node-v10.4.1-win-x64.zip"

    async def test_installs_when_missing(self, fake_unpacker: FakeUnpacker) -> None:
        installer = Installer.remote(V10, ARCHIVE_URL, unpacker=fake_unpacker)
        installed = await installer.install(NodeCatalog())
        assert installed == InstalledNow(V10)
        assert fake_unpacker.calls == [(ARCHIVE_URL, V10)]

    async def test_skips_when_cataloged(self, fake_unpacker: FakeUnpacker) -> None:
        installer = Installer.remote(V10, ARCHIVE_URL, unpacker=fake_unpacker)
        installed = await installer.install(NodeCatalog(versions=[V10]))
        assert installed == AlreadyInstalled(V10)
        assert fake_unpacker.calls == []

    async def test_install_does_not_touch_catalog(self, fake_unpacker: FakeUnpacker) -> None:
        catalog = NodeCatalog()
        await Installer.remote(V10, ARCHIVE_URL, unpacker=fake_unpacker).install(catalog)
        assert catalog.versions == ()


# ---------------------------------------------------------------------------
# TarballUnpacker
# ---------------------------------------------------------------------------


class TestTarballUnpacker:
    async def test_downloads_and_extracts(
        self, layout: Layout, make_tarball: Callable[[str], bytes]
    ) -> None:
        with respx.mock:
            archive = make_tarball("10.4.1")
            respx.get(ARCHIVE_URL).mock(return_value=httpx.Response(200, content=archive))
            async with httpx.AsyncClient() as client:
                home = await TarballUnpacker(client, layout).unpack(ARCHIVE_URL, V10)

        assert home == layout.node_version_dir(V10)
        assert (home / "bin" / "node").read_bytes().startswith(b"#!/bin/sh")

    async def test_no_staging_left_behind(
        self, layout: Layout, make_tarball: Callable[[str], bytes]
    ) -> None:
        with respx.mock:
            archive = make_tarball("10.4.1")
            respx.get(ARCHIVE_URL).mock(return_value=httpx.Response(200, content=archive))
            async with httpx.AsyncClient() as client:
                await TarballUnpacker(client, layout).unpack(ARCHIVE_URL, V10)

        assert [p.name for p in layout.node_versions_dir.iterdir()] == ["10.4.1"]

    async def test_zip_archive(self, layout: Layout) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("node-v10.4.1-win-x64/node.exe", b"MZ")
        url = "https://nodejs.org/dist/v10.4.1/node-v10.4.1-win-x64.zip"

        with respx.mock:
            respx.get(url).mock(return_value=httpx.Response(200, content=buffer.getvalue()))
            async with httpx.AsyncClient() as client:
                home = await TarballUnpacker(client, layout).unpack(url, V10)

        assert (home / "node.exe").read_bytes() == b"MZ"

    async def test_http_error(self, layout: Layout) -> None:
        with respx.mock:
            respx.get(ARCHIVE_URL).mock(return_value=httpx.Response(404))
            async with httpx.AsyncClient() as client:
                with pytest.raises(InstallError, match="HTTP 404"):
                    await TarballUnpacker(client, layout).unpack(ARCHIVE_URL, V10)

        assert not layout.node_version_dir(V10).exists()
        assert list(layout.node_versions_dir.iterdir()) == []

    async def test_corrupt_archive(self, layout: Layout) -> None:
        with respx.mock:
            respx.get(ARCHIVE_URL).mock(return_value=httpx.Response(200, content=b"not a tarball"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(InstallError, match="Failed to unpack"):
                    await TarballUnpacker(client, layout).unpack(ARCHIVE_URL, V10)

        assert not layout.node_version_dir(V10).exists()

    async def test_replaces_uncataloged_directory(
        self, layout: Layout, make_tarball: Callable[[str], bytes]
    ) -> None:
        stale = layout.node_version_dir(V10)
        (stale / "bin").mkdir(parents=True)
        (stale / "bin" / "leftover").write_text("")

        with respx.mock:
            archive = make_tarball("10.4.1")
            respx.get(ARCHIVE_URL).mock(return_value=httpx.Response(200, content=archive))
            async with httpx.AsyncClient() as client:
                installer = Installer.remote(
                    V10, ARCHIVE_URL, unpacker=TarballUnpacker(client, layout)
                )
                installed = await installer.install(NodeCatalog())

        assert installed == InstalledNow(V10)
        assert (stale / "bin" / "node").is_file()
        assert not (stale / "bin" / "leftover").exists()
        assert [p.name for p in layout.node_versions_dir.iterdir()] == ["10.4.1"]

    async def test_failed_download_keeps_existing_directory(self, layout: Layout) -> None:
        stale = layout.node_version_dir(V10)
        (stale / "bin").mkdir(parents=True)

        with respx.mock:
            respx.get(ARCHIVE_URL).mock(return_value=httpx.Response(500))
            async with httpx.AsyncClient() as client:
                with pytest.raises(InstallError):
                    await TarballUnpacker(client, layout).unpack(ARCHIVE_URL, V10)

        assert (stale / "bin").is_dir()

    async def test_unwritable_download_target(
        self, layout: Layout, make_tarball: Callable[[str], bytes], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def refuse(self: Path, *args: object, **kwargs: object) -> None:
            raise PermissionError(13, "Permission denied")

        with respx.mock:
            archive = make_tarball("10.4.1")
            respx.get(ARCHIVE_URL).mock(return_value=httpx.Response(200, content=archive))
            async with httpx.AsyncClient() as client:
                with monkeypatch.context() as patch:
                    patch.setattr(Path, "open", refuse)
                    with pytest.raises(InstallError, match="Failed to write") as exc_info:
                        await TarballUnpacker(client, layout).unpack(ARCHIVE_URL, V10)

        assert isinstance(exc_info.value.__cause__, PermissionError)
