"""Custom version resolution plugins.

A ``bin`` plugin is an executable named by a shell-like command line. It is
started with an empty standard input; whatever it needs (typically the version
requirement) must already be part of the configured command. It answers with a
single JSON document on standard output::

    {"type": "url", "version": "10.4.1", "url": "https://mirror/node-v10.4.1.tar.gz"}
    {"type": "stream", "version": "10.4.1"}

``url`` plugins, and ``stream`` responses, are recognised but not supported;
both fail with dedicated errors.
"""

from __future__ import annotations

import asyncio
import shlex
from dataclasses import dataclass
from typing import TYPE_CHECKING, assert_never

import structlog
from pydantic import ValidationError

from pinion.errors import (
    InvalidPluginCommandError,
    PluginNotImplementedError,
    ResolutionProtocolError,
    StreamResponseNotSupportedError,
)
from pinion.installer import Installer
from pinion.models.plugin import RESOLVE_RESPONSE_ADAPTER, StreamResponse, UrlResponse

if TYPE_CHECKING:
    from pinion.config import ResolvePluginSettings
    from pinion.installer import Unpacker
    from pinion.versions import VersionRequirement

log = structlog.get_logger()


@dataclass(frozen=True)
class UrlPlugin:
    """Resolves by sending the requirement to a URL. Not implemented."""

    url: str

    async def resolve(self, matching: VersionRequirement, unpacker: Unpacker) -> Installer:
        raise PluginNotImplementedError("url")


@dataclass(frozen=True)
class BinPlugin:
    """Resolves by running an executable and reading its standard output."""

    command: str
    timeout_seconds: float | None = 60.0

    def argv(self) -> list[str]:
        command = self.command.strip()
        try:
            words = shlex.split(command)
        except ValueError as exc:
            raise InvalidPluginCommandError(command) from exc
        if not words:
            raise InvalidPluginCommandError(command)
        return words

    async def resolve(self, matching: VersionRequirement, unpacker: Unpacker) -> Installer:
        stdout = await self._run(self.argv())
        response = parse_resolve_response(stdout, self.command)

        match response:
            case UrlResponse(version=version, url=url):
                log.info("plugin_resolved", command=self.command, version=str(version), url=url)
                return Installer.remote(version, url, unpacker=unpacker)
            case StreamResponse(version=version):
                raise StreamResponseNotSupportedError(self.command, version)
            case _:
                assert_never(response)

    async def _run(self, argv: list[str]) -> bytes:
        log.debug("plugin_spawn", argv=argv)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ResolutionProtocolError(self.command, f"could not be started: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            raise ResolutionProtocolError(
                self.command, f"did not finish within {self.timeout_seconds} seconds"
            ) from None

        if stderr:
            log.debug("plugin_stderr", command=self.command, stderr=stderr.decode(errors="replace"))
        if process.returncode != 0:
            raise ResolutionProtocolError(self.command, f"exited with status {process.returncode}")
        if not stdout.strip():
            raise ResolutionProtocolError(self.command, "produced no output")
        return stdout


ResolvePlugin = UrlPlugin | BinPlugin


def parse_resolve_response(data: str | bytes, command: str) -> UrlResponse | StreamResponse:
    try:
        return RESOLVE_RESPONSE_ADAPTER.validate_json(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        reason = f"produced an invalid response: {first['msg']}"
        raise ResolutionProtocolError(command, reason) from exc


def plugin_from_settings(
    settings: ResolvePluginSettings, *, timeout_seconds: float | None = 60.0
) -> ResolvePlugin:
    if settings.bin is not None:
        return BinPlugin(settings.bin, timeout_seconds=timeout_seconds)
    if settings.url is not None:
        return UrlPlugin(settings.url)
    raise AssertionError("ResolvePluginSettings validated to carry exactly one kind")
