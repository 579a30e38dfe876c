"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (PINION__NODE__INDEX_URL=https://mirror/index.json)
  3. pinion.toml            (searched in cwd, then the platform config dir)
  4. Hardcoded defaults

The config file is optional. A custom resolver is configured with exactly one
of ``url`` or ``bin``::

    [node.resolve]
    bin = "my-resolver --channel lts 10"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

PUBLIC_NODE_VERSION_INDEX = "https://nodejs.org/dist/index.json"
PUBLIC_NODE_DIST = "https://nodejs.org/dist"

_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("pinion")
_DEFAULT_CONFIG_FILE = str(Path(_DEFAULT_CONFIG_DIR) / "config.toml")


def _find_config_file() -> str | None:
    """Return the path of the first pinion config file found, or None."""
    candidates = [
        Path("pinion.toml"),
        Path(_DEFAULT_CONFIG_FILE),
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ResolvePluginSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str | None = None
    bin: str | None = None

    @model_validator(mode="after")
    def exactly_one_kind(self) -> ResolvePluginSettings:
        if self.url is not None and self.bin is not None:
            raise ValueError("resolve plugin cannot specify both 'url' and 'bin'")
        if self.url is None and self.bin is None:
            raise ValueError("resolve plugin must specify either 'url' or 'bin'")
        return self


class NodeSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index_url: str = PUBLIC_NODE_VERSION_INDEX
    dist_url: str = PUBLIC_NODE_DIST
    # Skip index versions that publish no archive for this OS/arch.
    filter_platform: bool = True
    resolve: ResolvePluginSettings | None = None


class FetcherSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timeout_seconds: float = 30.0
    show_progress: bool = True


class PluginSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timeout_seconds: float = 60.0


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Used when index.json comes back with neither Expires nor max-age.
    default_max_age_seconds: int = 4 * 60 * 60


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PINION__PLUGIN__TIMEOUT_SECONDS=5
        env_prefix="PINION__",
        env_nested_delimiter="__",
        toml_file=_find_config_file(),
    )

    # Root of the on-disk layout; defaults to ~/.pinion
    home: str | None = None
    node: NodeSettings = NodeSettings()
    fetcher: FetcherSettings = FetcherSettings()
    plugin: PluginSettings = PluginSettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            TomlConfigSettingsSource(settings_cls),  # TOML file
            # dotenv and file secrets intentionally excluded
        )
