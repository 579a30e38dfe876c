"""Naming of the current operating system and CPU in Node distribution terms."""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass

_OS_NAMES = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "win",
}

_ARCH_NAMES = {
    "x86_64": "x64",
    "amd64": "x64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armv7l",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


@dataclass(frozen=True)
class NodePlatform:
    """An (os, arch) pair as spelled in Node archive names, e.g. ``linux``/``x64``."""

    os: str
    arch: str

    @classmethod
    def current(cls) -> NodePlatform:
        os_name = _OS_NAMES.get(sys.platform, sys.platform)
        machine = platform.machine().lower()
        return cls(os=os_name, arch=_ARCH_NAMES.get(machine, machine))

    @property
    def archive_extension(self) -> str:
        return "zip" if self.os == "win" else "tar.gz"

    @property
    def index_key(self) -> str:
        """The ``files`` entry in index.json announcing an archive for this platform."""
        match self.os:
            case "darwin":
                return f"osx-{self.arch}-tar"
            case "win":
                return f"win-{self.arch}-zip"
            case _:
                return f"{self.os}-{self.arch}"

    def archive_name(self, version: object) -> str:
        return f"node-v{version}-{self.os}-{self.arch}.{self.archive_extension}"
