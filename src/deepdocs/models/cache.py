from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

CACHE_VERSION = "1.1.0"


def _now() -> datetime:
    return datetime.now(UTC)


class DeprecationInfo(BaseModel):
    is_deprecated: bool = True
    reason: str = "This API is deprecated"
    alternative: str | None = None


class CacheEntry(BaseModel):
    """Documentation record for one API, stored as one JSON file."""

    identifier: str
    framework: str
    title: str = ""
    kind: str = "class"
    availability: str = "iOS 13.0+"
    url: str | None = None
    description: str = "No description available"
    properties: list[str] = []  # "name: Type"
    methods: list[str] = []  # "name(params): ReturnType"
    examples: list[str] = []
    related: list[str] = []  # Related identifiers, insertion order
    deprecation: DeprecationInfo | None = None
    cached_at: datetime = Field(default_factory=_now)
    last_accessed: datetime = Field(default_factory=_now)
    access_count: int = Field(default=1, ge=1)

    # Provenance of this copy of the record. Never written to disk.
    from_cache: bool = False

    @field_validator("related")
    @classmethod
    def dedupe_related(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @property
    def display_name(self) -> str:
        return self.title or self.identifier

    @property
    def is_deprecated(self) -> bool:
        return self.deprecation is not None and self.deprecation.is_deprecated


class CacheMetadata(BaseModel):
    """Aggregate bookkeeping persisted next to the entries.

    ``total_apis`` is best-effort; ``CacheStore.stats()`` re-derives the
    count from the entry files.
    """

    total_apis: int = 0
    frameworks: list[str] = []
    cache_version: str = CACHE_VERSION
    last_cleanup: datetime = Field(default_factory=_now)


class CacheStats(BaseModel):
    total_apis: int = 0
    frameworks: list[str] = []
    disk_usage_bytes: int = 0
    oldest_cached_at: datetime | None = None
    newest_cached_at: datetime | None = None
    most_accessed: str | None = None  # "<framework>.<identifier>"
    most_accessed_count: int = 0
    max_cache_size: int = 0

    @property
    def disk_usage(self) -> str:
        return f"{self.disk_usage_bytes / 1024 / 1024:.2f} MB"
