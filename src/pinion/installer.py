"""Materialising a resolved Node version on disk.

An ``Installer`` is what resolution produces: a version plus the URL of its
archive, bound to the ``Unpacker`` that will download and extract it. The
catalog runs the installer and only records the version when the result is
``InstalledNow``.
"""

from __future__ import annotations

import os
import shutil
import tarfile
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlparse

import httpx
import structlog

from pinion.errors import InstallError

if TYPE_CHECKING:
    from pinion.catalog import NodeCatalog
    from pinion.host import NodePlatform
    from pinion.paths import Layout
    from pinion.versions import Version

log = structlog.get_logger()


@dataclass(frozen=True)
class InstalledNow:
    version: Version


@dataclass(frozen=True)
class AlreadyInstalled:
    version: Version


Installed = InstalledNow | AlreadyInstalled


class Unpacker(Protocol):
    async def unpack(self, url: str, version: Version) -> Path:
        """Download the archive at *url* and extract it as *version*'s install directory."""
        ...


@dataclass(frozen=True)
class Installer:
    version: Version
    url: str
    unpacker: Unpacker

    @classmethod
    def public(
        cls, version: Version, *, dist_url: str, platform: NodePlatform, unpacker: Unpacker
    ) -> Installer:
        """An installer for the official archive on the public distribution server."""
        url = f"{dist_url.rstrip('/')}/v{version}/{platform.archive_name(version)}"
        return cls(version, url, unpacker)

    @classmethod
    def remote(cls, version: Version, url: str, *, unpacker: Unpacker) -> Installer:
        return cls(version, url, unpacker)

    async def install(self, catalog: NodeCatalog) -> Installed:
        if catalog.contains(self.version):
            log.info("node_already_installed", version=str(self.version))
            return AlreadyInstalled(self.version)
        await self.unpacker.unpack(self.url, self.version)
        log.info("node_installed", version=str(self.version), url=self.url)
        return InstalledNow(self.version)


def _extract(archive: Path, destination: Path) -> None:
    if archive.name.endswith(".zip"):
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(destination)
    else:
        with tarfile.open(archive) as tf:
            tf.extractall(destination, filter="data")


def _content_root(extracted: Path) -> Path:
    """Archives wrap their contents in one top-level directory; unwrap it."""
    children = list(extracted.iterdir())
    if len(children) == 1 and children[0].is_dir():
        return children[0]
    return extracted


class TarballUnpacker:
    """Downloads a Node archive with httpx and extracts it into the versions dir.

    The archive is staged in a temporary directory inside the versions
    directory and moved into place with ``os.replace``, so an interrupted
    install never leaves a partial version directory behind. A complete
    directory the catalog does not list is replaced by the fresh copy.
    """

    def __init__(self, client: httpx.AsyncClient, layout: Layout) -> None:
        self._client = client
        self._layout = layout

    async def unpack(self, url: str, version: Version) -> Path:
        destination = self._layout.node_version_dir(version)
        versions_dir = self._layout.node_versions_dir
        versions_dir.mkdir(parents=True, exist_ok=True)
        archive_name = Path(urlparse(url).path).name or f"node-v{version}.tar.gz"

        with tempfile.TemporaryDirectory(dir=versions_dir, prefix=".staging-") as staging:
            archive = Path(staging) / archive_name
            await self._download(url, archive)

            extracted = Path(staging) / "contents"
            try:
                _extract(archive, extracted)
                if destination.exists():
                    # Left behind by an install that never reached the catalog.
                    log.warning("node_version_dir_replaced", path=str(destination))
                    shutil.rmtree(destination)
                os.replace(_content_root(extracted), destination)
            except (OSError, tarfile.TarError, zipfile.BadZipFile) as exc:
                raise InstallError(f"Failed to unpack {archive_name}: {exc}") from exc

        log.info("node_unpacked", version=str(version), path=str(destination))
        return destination

    async def _download(self, url: str, target: Path) -> None:
        log.info("node_download_start", url=url)
        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                with target.open("wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise InstallError(f"Downloading {url} failed with HTTP {status}") from exc
        except httpx.HTTPError as exc:
            raise InstallError(f"Downloading {url} failed: {exc}") from exc
        except OSError as exc:
            raise InstallError(f"Failed to write {target}: {exc}") from exc
