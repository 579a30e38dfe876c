"""On-disk cache of the public version index.

Two files live side by side in the node cache directory: the raw index body
and a companion file holding its expiry as an HTTP date. Both are written
through a temporary file in the same directory followed by ``os.replace``,
so a reader never observes a half-written file under the permanent name.

A missing or unparseable expiry record means the cache is cold. That is
logged and reported as a miss, never raised: the caller simply fetches again.
Genuine I/O failures (permissions, full disk) are raised as
``IndexCacheError``.
"""

from __future__ import annotations

import os
import tempfile
from datetime import UTC, datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import TYPE_CHECKING

import structlog

from pinion.errors import IndexCacheError

if TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()


def format_http_date(moment: datetime) -> str:
    """Format *moment* as an IMF-fixdate, e.g. ``Wed, 21 Oct 2015 07:28:00 GMT``."""
    return format_datetime(moment.astimezone(UTC), usegmt=True)


def parse_http_date(text: str) -> datetime | None:
    """Parse an HTTP date into an aware datetime, or ``None`` if it is not one."""
    try:
        parsed = parsedate_to_datetime(text.strip())
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _read_file_opt(path: Path) -> str | None:
    """Read *path*, or return ``None`` if it does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* via a same-directory temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", delete=False, dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    ) as fh:
        try:
            fh.write(data)
        except BaseException:
            fh.close()
            os.unlink(fh.name)
            raise
    try:
        os.replace(fh.name, path)
    except BaseException:
        os.unlink(fh.name)
        raise


class IndexCache:
    """The cached index body plus its expiry record."""

    def __init__(self, index_file: Path, expiry_file: Path) -> None:
        self._index_file = index_file
        self._expiry_file = expiry_file

    def read_expiry(self) -> datetime | None:
        try:
            text = _read_file_opt(self._expiry_file)
        except OSError as exc:
            raise IndexCacheError(f"Failed to read {self._expiry_file}") from exc
        if text is None:
            return None
        expires_at = parse_http_date(text)
        if expires_at is None:
            log.warning("index_cache_expiry_unparseable", path=str(self._expiry_file))
        return expires_at

    def read_fresh(self, now: datetime | None = None) -> str | None:
        """Return the cached index body if it has not expired, else ``None``."""
        expires_at = self.read_expiry()
        if expires_at is None:
            log.debug("index_cache_miss", reason="no_expiry")
            return None

        now = now or datetime.now(UTC)
        if now >= expires_at:
            log.debug("index_cache_miss", reason="expired", expires_at=expires_at.isoformat())
            return None

        try:
            body = _read_file_opt(self._index_file)
        except OSError as exc:
            raise IndexCacheError(f"Failed to read {self._index_file}") from exc
        if body is None:
            log.debug("index_cache_miss", reason="no_body")
            return None

        log.debug("index_cache_hit", expires_at=expires_at.isoformat())
        return body

    def store(self, body: str, expires_at: datetime) -> None:
        """Persist a freshly fetched index body and its expiry."""
        try:
            atomic_write(self._index_file, body)
            atomic_write(self._expiry_file, format_http_date(expires_at))
        except OSError as exc:
            raise IndexCacheError(
                f"Failed to write index cache in {self._index_file.parent}"
            ) from exc
        log.info("index_cache_stored", expires_at=expires_at.isoformat())
