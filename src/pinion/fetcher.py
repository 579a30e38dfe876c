"""HTTP fetch of the public version index.

The fetcher performs a single GET (no retry) and derives how long the body
may be cached from the response headers:

1. an explicit, parseable ``Expires`` header wins;
2. otherwise ``now + max-age`` from ``Cache-Control``;
3. otherwise ``now + default_max_age`` (four hours unless configured).
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import httpx
import structlog
from rich.console import Console

from pinion import __version__
from pinion.cache import parse_http_date
from pinion.config import CacheSettings, FetcherSettings
from pinion.errors import IndexFetchError

if TYPE_CHECKING:
    from collections.abc import Iterator

log = structlog.get_logger()

DEFAULT_MAX_AGE_SECONDS = 4 * 60 * 60
# Larger delta-seconds values are treated as this one (RFC 9111, section 1.2.2).
MAX_DELTA_SECONDS = 2**31


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client used for index and archive downloads."""
    settings = settings or FetcherSettings()
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": f"pinion/{__version__}"},
    )


def max_age(headers: httpx.Headers) -> int | None:
    """Return the ``max-age`` directive of ``Cache-Control``, if any."""
    for directive in headers.get("cache-control", "").split(","):
        name, _, value = directive.strip().partition("=")
        if name.lower() == "max-age":
            try:
                return min(max(int(value.strip().strip('"')), 0), MAX_DELTA_SECONDS)
            except ValueError:
                return None
    return None


def compute_expiry(
    headers: httpx.Headers,
    now: datetime,
    default_max_age: int = DEFAULT_MAX_AGE_SECONDS,
) -> datetime:
    expires = headers.get("expires")
    if expires is not None:
        expires_at = parse_http_date(expires)
        if expires_at is not None:
            return expires_at
        log.debug("index_expires_header_unparseable", value=expires)

    age = max_age(headers)
    if age is None:
        age = default_max_age
    return now + timedelta(seconds=age)


@dataclass(frozen=True)
class FetchedIndex:
    body: str
    expires_at: datetime


class IndexFetcher:
    """Fetches index.json, showing a spinner on stderr while the request runs."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: FetcherSettings | None = None,
        cache_settings: CacheSettings | None = None,
        console: Console | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or FetcherSettings()
        self._default_max_age = (cache_settings or CacheSettings()).default_max_age_seconds
        self._console = console or Console(stderr=True)

    @contextlib.contextmanager
    def _progress(self, url: str) -> Iterator[None]:
        if not self._settings.show_progress:
            yield
            return
        with self._console.status(f"Fetching public registry: {url}"):
            yield

    async def fetch(self, url: str) -> FetchedIndex:
        log.info("index_fetch_start", url=url)
        with self._progress(url):
            try:
                response = await self._client.get(url)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise IndexFetchError(
                    f"Fetching {url} failed with HTTP {exc.response.status_code}"
                ) from exc
            except httpx.HTTPError as exc:
                raise IndexFetchError(f"Fetching {url} failed: {exc}") from exc
            body = response.text

        expires_at = compute_expiry(response.headers, datetime.now(UTC), self._default_max_age)
        log.info(
            "index_fetch_complete", url=url, bytes=len(body), expires_at=expires_at.isoformat()
        )
        return FetchedIndex(body=body, expires_at=expires_at)
