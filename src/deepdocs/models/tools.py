from __future__ import annotations

from pydantic import BaseModel, field_validator

from deepdocs.models.cache import CacheEntry, CacheStats

_MAX_IDENTIFIER_LENGTH = 200


def _validate_identifier(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("identifier must not be empty")
    if len(v) > _MAX_IDENTIFIER_LENGTH:
        raise ValueError(f"identifier must be at most {_MAX_IDENTIFIER_LENGTH} characters")
    return v


class ResolveApiInput(BaseModel):
    identifier: str
    framework: str | None = None

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        return _validate_identifier(v)

    @field_validator("framework")
    @classmethod
    def blank_framework_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class ResolveApisInput(BaseModel):
    identifiers: list[str]

    @field_validator("identifiers")
    @classmethod
    def validate_identifiers(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("identifiers must not be empty")
        return [_validate_identifier(item) for item in v]


class SearchCacheInput(BaseModel):
    term: str
    framework: str | None = None

    @field_validator("term")
    @classmethod
    def validate_term(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("term must not be empty")
        return v


class ResolveApiOutput(BaseModel):
    identifier: str
    framework: str | None
    entries: list[CacheEntry]


class ResolveApisOutput(BaseModel):
    entries: list[CacheEntry]
    from_cache: int
    from_web: int
    total: int
    failed_seeds: list[str]


class SearchCacheOutput(BaseModel):
    matches: list[CacheEntry]


class CacheStatsOutput(BaseModel):
    stats: CacheStats
    disk_usage: str


class CacheMaintenanceOutput(BaseModel):
    action: str
    removed: int
