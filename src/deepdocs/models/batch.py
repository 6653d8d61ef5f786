from __future__ import annotations

from pydantic import BaseModel

from deepdocs.models.cache import CacheEntry


class BatchResult(BaseModel):
    """Aggregated output of a multi-seed resolution."""

    seeds: list[str] = []
    entries: list[CacheEntry] = []
    from_cache: int = 0
    from_web: int = 0
    failed_seeds: list[str] = []

    @property
    def total(self) -> int:
        return len(self.entries)
