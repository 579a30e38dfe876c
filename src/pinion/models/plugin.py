from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from pinion.versions import Version


class UrlResponse(BaseModel):
    """The resolved version can be downloaded from ``url``."""

    type: Literal["url"]
    version: Version
    url: str


class StreamResponse(BaseModel):
    """The plugin delivers the archive over its own output stream."""

    type: Literal["stream"]
    version: Version


ResolveResponse = Annotated[UrlResponse | StreamResponse, Field(discriminator="type")]

RESOLVE_RESPONSE_ADAPTER: TypeAdapter[UrlResponse | StreamResponse] = TypeAdapter(ResolveResponse)
