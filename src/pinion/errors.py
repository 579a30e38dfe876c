"""Error types raised by the pinion core.

Every failure that crosses a public boundary is a ``PinionError``. Each class
carries a stable ``code``, whether its message is fit to show a user as-is
(``user_friendly``), and the ``exit_code`` the command-line front end should
terminate with. Lower-level failures (disk, network, parsing) are wrapped in
the opaque classes at the bottom of this module with the original exception
chained as ``__cause__``.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class ErrorCode(StrEnum):
    NO_HOME_DIRECTORY = "NO_HOME_DIRECTORY"
    INVALID_VERSION = "INVALID_VERSION"
    INVALID_REQUIREMENT = "INVALID_REQUIREMENT"
    NO_VERSION_FOUND = "NO_VERSION_FOUND"
    INVALID_PLUGIN_COMMAND = "INVALID_PLUGIN_COMMAND"
    PLUGIN_NOT_IMPLEMENTED = "PLUGIN_NOT_IMPLEMENTED"
    RESOLUTION_PROTOCOL_ERROR = "RESOLUTION_PROTOCOL_ERROR"
    STREAM_NOT_SUPPORTED = "STREAM_NOT_SUPPORTED"
    CATALOG_DESYNC = "CATALOG_DESYNC"
    CATALOG_FILE_ERROR = "CATALOG_FILE_ERROR"
    INDEX_FETCH_FAILED = "INDEX_FETCH_FAILED"
    INDEX_PARSE_FAILED = "INDEX_PARSE_FAILED"
    INDEX_CACHE_ERROR = "INDEX_CACHE_ERROR"
    INSTALL_FAILED = "INSTALL_FAILED"
    UNKNOWN = "UNKNOWN"


class ExitCode(IntEnum):
    UNKNOWN = 1
    USAGE = 2
    CONFIGURATION = 3
    ENVIRONMENT = 4
    PLUGIN = 5
    NO_VERSION = 100


class PinionError(Exception):
    """Base class for all pinion errors."""

    code: ErrorCode = ErrorCode.UNKNOWN
    user_friendly: bool = False
    exit_code: int = ExitCode.UNKNOWN

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "user_friendly": self.user_friendly,
                "exit_code": int(self.exit_code),
            }
        }


# ---------------------------------------------------------------------------
# Environment and input
# ---------------------------------------------------------------------------


class NoHomeDirectoryError(PinionError):
    code = ErrorCode.NO_HOME_DIRECTORY
    user_friendly = True
    exit_code = ExitCode.ENVIRONMENT

    def __init__(self) -> None:
        super().__init__("Could not determine the user's home directory; set PINION__HOME")


class InvalidVersionError(PinionError, ValueError):
    code = ErrorCode.INVALID_VERSION
    user_friendly = True
    exit_code = ExitCode.USAGE

    def __init__(self, text: str) -> None:
        super().__init__(f"Invalid version: {text!r}")
        self.text = text


class InvalidRequirementError(PinionError, ValueError):
    code = ErrorCode.INVALID_REQUIREMENT
    user_friendly = True
    exit_code = ExitCode.USAGE

    def __init__(self, text: str) -> None:
        super().__init__(f"Invalid version requirement: {text!r}")
        self.text = text


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class NoVersionFoundError(PinionError):
    code = ErrorCode.NO_VERSION_FOUND
    user_friendly = True
    exit_code = ExitCode.NO_VERSION

    def __init__(self, requirement: object) -> None:
        super().__init__(f"No Node version found for {requirement}")
        self.requirement = requirement


class InvalidPluginCommandError(PinionError):
    code = ErrorCode.INVALID_PLUGIN_COMMAND
    user_friendly = True
    exit_code = ExitCode.CONFIGURATION

    def __init__(self, command: str) -> None:
        super().__init__(f"Invalid plugin command: '{command}'")
        self.command = command


class PluginNotImplementedError(PinionError):
    code = ErrorCode.PLUGIN_NOT_IMPLEMENTED
    user_friendly = True
    exit_code = ExitCode.CONFIGURATION

    def __init__(self, kind: str) -> None:
        super().__init__(f"Resolve plugins of kind '{kind}' are not supported yet")
        self.kind = kind


class ResolutionProtocolError(PinionError):
    code = ErrorCode.RESOLUTION_PROTOCOL_ERROR
    user_friendly = True
    exit_code = ExitCode.PLUGIN

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"Resolve plugin '{command}' {reason}")
        self.command = command
        self.reason = reason


class StreamResponseNotSupportedError(ResolutionProtocolError):
    code = ErrorCode.STREAM_NOT_SUPPORTED

    def __init__(self, command: str, version: object) -> None:
        super().__init__(command, f"responded with a stream for {version}, which is not supported")
        self.version = version


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class CatalogDesyncError(PinionError):
    """A cataloged version has no install directory on disk."""

    code = ErrorCode.CATALOG_DESYNC

    def __init__(self, path: Path) -> None:
        super().__init__(f"{path} is not a directory")
        self.path = path


class CatalogFileError(PinionError):
    code = ErrorCode.CATALOG_FILE_ERROR


# ---------------------------------------------------------------------------
# Opaque infrastructure failures
# ---------------------------------------------------------------------------


class IndexFetchError(PinionError):
    code = ErrorCode.INDEX_FETCH_FAILED


class IndexParseError(PinionError):
    code = ErrorCode.INDEX_PARSE_FAILED


class IndexCacheError(PinionError):
    code = ErrorCode.INDEX_CACHE_ERROR


class InstallError(PinionError):
    code = ErrorCode.INSTALL_FAILED
