"""File-backed documentation cache with access accounting.

Layout: one pretty-printed JSON document per entry, named after the sanitised
``<framework>-<identifier>`` key, plus a ``metadata.json`` aggregate, all in a
single directory.

All cache operations catch storage failures internally and degrade
gracefully: read failures return ``None`` (treated as cache miss by callers),
write failures are logged and ignored (fetched content is still returned).
Infrastructure errors never cross the CacheStore class boundary. Errors are
still logged with ``exc_info=True`` so they remain observable via stderr.

There is no locking. Reads rewrite the entry to bump its access counter, so
two processes sharing a directory can lose increments; the store assumes a
single-process host.
"""

from __future__ import annotations

import os
import re
from contextlib import suppress
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import structlog
from pydantic import BaseModel

from deepdocs.errors import ErrorCode, StorageIOError
from deepdocs.frameworks import canonical_framework
from deepdocs.models.cache import CacheEntry, CacheMetadata, CacheStats

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

log = structlog.get_logger()

METADATA_FILE = "metadata.json"
SEARCH_LIMIT = 10

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_EPOCH = datetime.min.replace(tzinfo=UTC)

_M = TypeVar("_M", bound=BaseModel)


def sanitize_key(name: str) -> str:
    """Replace characters unsafe for file names and case-fold."""
    return _UNSAFE_CHARS.sub("_", name).lower()


def cache_file_name(framework: str, identifier: str) -> str:
    return f"{sanitize_key(f'{framework}-{identifier}')}.json"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CacheStore:
    """Durable key/value store of CacheEntry records implementing CacheProtocol."""

    def __init__(
        self,
        cache_dir: Path | str,
        *,
        max_entries: int = 5000,
        ttl_days: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._dir = Path(cache_dir)
        self._metadata_path = self._dir / METADATA_FILE
        self.max_entries = max_entries
        self.ttl_days = ttl_days
        self._clock = clock

    @property
    def cache_dir(self) -> Path:
        return self._dir

    def ensure_storage(self) -> None:
        """Create the cache directory. Non-fatal on failure."""
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            log.warning("cache_dir_create_error", path=str(self._dir), exc_info=True)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def get(self, framework: str, identifier: str) -> CacheEntry | None:
        """Read an entry and bump its access statistics.

        Returns ``None`` on cache miss, expiry, or read failure. A failure to
        persist the bumped counters is logged but the entry is still returned.
        """
        path = self._entry_path(framework, identifier)
        key = path.stem
        if not path.exists():
            return None

        try:
            entry = self._load(path, CacheEntry)
        except StorageIOError:
            log.warning("cache_read_error", key=key, exc_info=True)
            return None

        now = self._clock()
        if self._is_expired(entry, now):
            log.info("cache_entry_expired", key=key, cached_at=entry.cached_at.isoformat())
            self._delete(path)
            self._sync_metadata()
            return None

        entry.last_accessed = max(now, entry.cached_at)
        entry.access_count += 1
        try:
            self._save(path, entry)
        except StorageIOError:
            log.warning("cache_write_error", key=key, exc_info=True)

        entry.from_cache = True
        log.debug("cache_hit", key=key, access_count=entry.access_count)
        return entry

    def put(self, entry: CacheEntry) -> None:
        """Write an entry, replacing any previous entry for the same key.

        Timestamps and the access counter are reset. Non-fatal on failure.
        """
        path = self._entry_path(entry.framework, entry.identifier)
        is_new = not path.exists()
        now = self._clock()
        stored = entry.model_copy(
            update={
                "cached_at": now,
                "last_accessed": now,
                "access_count": 1,
                "from_cache": False,
            }
        )

        try:
            self._save(path, stored)
        except StorageIOError:
            log.warning("cache_write_error", key=path.stem, exc_info=True)
            return

        metadata = self._load_metadata()
        if is_new:
            metadata.total_apis += 1
        if stored.framework not in metadata.frameworks:
            metadata.frameworks.append(stored.framework)
        self._save_metadata(metadata)

        log.info("cache_put", key=path.stem, new=is_new)

    def search(self, term: str, framework: str | None = None) -> list[CacheEntry]:
        """Case-insensitive substring search across all cached entries.

        Name matches (identifier or title) rank above matches found only in the
        description, methods or properties; ties go to the most accessed entry.
        Read-only: access statistics are not touched.
        """
        needle = term.strip().lower()
        if not needle:
            return []
        wanted = canonical_framework(framework).lower() if framework else None

        ranked: list[tuple[int, int, CacheEntry]] = []
        for _path, entry in self._scan():
            if entry is None:
                continue
            if wanted is not None and entry.framework.lower() != wanted:
                continue

            name_hit = needle in entry.identifier.lower()
            if not name_hit:
                body = " ".join([entry.description, *entry.methods, *entry.properties]).lower()
                if needle not in body:
                    continue
            ranked.append((0 if name_hit else 1, -entry.access_count, entry))

        ranked.sort(key=lambda item: (item[0], item[1]))
        results = [entry for _, _, entry in ranked[:SEARCH_LIMIT]]
        log.info("cache_search_complete", term=term, framework=framework, matches=len(ranked))
        return results

    def count(self) -> int:
        return len(self._entry_files())

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def evict_if_over_capacity(self, capacity: int) -> int:
        """Delete least-used entries until at most ``capacity`` remain.

        Entries are removed ascending by ``(access_count, last_accessed)``.
        Unreadable entry files sort first. Returns the number removed.
        """
        scanned = self._scan()
        excess = len(scanned) - capacity
        removed = 0

        if excess > 0:
            candidates = sorted(
                scanned,
                key=lambda item: (
                    (item[1].access_count, item[1].last_accessed, item[0].name)
                    if item[1] is not None
                    else (0, _EPOCH, item[0].name)
                ),
            )
            for path, _entry in candidates[:excess]:
                if self._delete(path):
                    removed += 1

        metadata = self._load_metadata()
        metadata.total_apis = len(scanned) - removed
        metadata.last_cleanup = self._clock()
        self._save_metadata(metadata)

        log.info("cache_eviction_complete", removed=removed, capacity=capacity)
        return removed

    def stats(self) -> CacheStats:
        """Recompute statistics from the entry files on disk."""
        total = 0
        disk_usage = 0
        frameworks: set[str] = set()
        oldest: datetime | None = None
        newest: datetime | None = None
        most_accessed: CacheEntry | None = None

        for path, entry in self._scan():
            total += 1
            with suppress(OSError):
                disk_usage += path.stat().st_size
            if entry is None:
                continue

            frameworks.add(entry.framework)
            if oldest is None or entry.cached_at < oldest:
                oldest = entry.cached_at
            if newest is None or entry.cached_at > newest:
                newest = entry.cached_at
            if most_accessed is None or entry.access_count > most_accessed.access_count:
                most_accessed = entry

        return CacheStats(
            total_apis=total,
            frameworks=sorted(frameworks),
            disk_usage_bytes=disk_usage,
            oldest_cached_at=oldest,
            newest_cached_at=newest,
            most_accessed=(
                f"{most_accessed.framework}.{most_accessed.identifier}"
                if most_accessed is not None
                else None
            ),
            most_accessed_count=most_accessed.access_count if most_accessed is not None else 0,
            max_cache_size=self.max_entries,
        )

    def clear(self) -> None:
        """Delete every entry and reset the metadata aggregate. Non-fatal on failure."""
        removed = 0
        if self._dir.exists():
            for path in [*self._dir.glob("*.json"), *self._dir.glob("*.tmp")]:
                if path.name == METADATA_FILE:
                    continue
                if self._delete(path):
                    removed += 1

        self._save_metadata(CacheMetadata(last_cleanup=self._clock()))
        log.info("cache_cleared", removed=removed)

    def load_metadata(self) -> CacheMetadata:
        return self._load_metadata()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _entry_path(self, framework: str, identifier: str) -> Path:
        return self._dir / cache_file_name(framework, identifier)

    def _entry_files(self) -> list[Path]:
        if not self._dir.exists():
            return []
        return sorted(p for p in self._dir.glob("*.json") if p.name != METADATA_FILE)

    def _scan(self) -> list[tuple[Path, CacheEntry | None]]:
        """Load every entry file. Unreadable files are paired with ``None``."""
        return list(self._iter_files())

    def _iter_files(self) -> Iterator[tuple[Path, CacheEntry | None]]:
        for path in self._entry_files():
            try:
                yield path, self._load(path, CacheEntry)
            except StorageIOError:
                log.warning("cache_read_error", key=path.stem, exc_info=True)
                yield path, None

    def _is_expired(self, entry: CacheEntry, now: datetime) -> bool:
        if self.ttl_days is None:
            return False
        return now - entry.cached_at > timedelta(days=self.ttl_days)

    def _load(self, path: Path, model: type[_M]) -> _M:
        try:
            return model.model_validate_json(path.read_bytes())
        except (OSError, ValueError) as exc:
            raise StorageIOError(
                code=ErrorCode.STORAGE_IO_FAILED,
                message=f"Unreadable cache file {path.name}: {exc}",
                suggestion="Delete the file or clear the cache.",
                recoverable=True,
            ) from exc

    def _save(self, path: Path, model: BaseModel) -> None:
        """Persist a model with atomic replace semantics."""
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                model.model_dump_json(indent=2, exclude={"from_cache"}), encoding="utf-8"
            )
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageIOError(
                code=ErrorCode.STORAGE_IO_FAILED,
                message=f"Could not write cache file {path.name}: {exc}",
                suggestion="Check that the cache directory is writable.",
                recoverable=True,
            ) from exc
        finally:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)

    def _delete(self, path: Path) -> bool:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            log.warning("cache_delete_error", key=path.stem, exc_info=True)
            return False
        return True

    def _load_metadata(self) -> CacheMetadata:
        if not self._metadata_path.exists():
            return CacheMetadata(last_cleanup=self._clock())
        try:
            return self._load(self._metadata_path, CacheMetadata)
        except StorageIOError:
            log.warning("cache_metadata_read_error", exc_info=True)
            return CacheMetadata(last_cleanup=self._clock())

    def _save_metadata(self, metadata: CacheMetadata) -> None:
        try:
            self._save(self._metadata_path, metadata)
        except StorageIOError:
            log.warning("cache_metadata_write_error", exc_info=True)

    def _sync_metadata(self) -> None:
        metadata = self._load_metadata()
        metadata.total_apis = self.count()
        self._save_metadata(metadata)


class TransientLayer:
    """Process-local map of page URL → entry built during this process.

    Sits in front of the durable store for link-following. Nothing expires;
    the map is emptied only by ``clear()``.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, url: str) -> CacheEntry | None:
        entry = self._entries.get(url)
        return entry.model_copy(deep=True) if entry is not None else None

    def put(self, url: str, entry: CacheEntry) -> None:
        self._entries[url] = entry.model_copy(deep=True)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
