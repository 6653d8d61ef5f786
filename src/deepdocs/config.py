"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (DEEPDOCS__CACHE__MAX_ENTRIES=2000)
  2. deepdocs.yaml          (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("deepdocs")
_DEFAULT_CACHE_DIR = str(Path(_DEFAULT_DATA_DIR) / "api-cache")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
)


def _find_config_file() -> str | None:
    """Return the path of the first deepdocs.yaml found, or None."""
    candidates = [
        Path("deepdocs.yaml"),
        Path(platformdirs.user_config_dir("deepdocs")) / "deepdocs.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class CacheSettings(BaseModel):
    dir: str = _DEFAULT_CACHE_DIR
    max_entries: int = 5000
    # None keeps entries until capacity eviction; a number of days enables expiry on read.
    ttl_days: int | None = None


class FetcherSettings(BaseModel):
    base_url: str = "https://developer.apple.com"
    user_agent: str = DEFAULT_USER_AGENT
    detail_timeout_seconds: float = 10.0
    discovery_timeout_seconds: float = 8.0
    max_redirects: int = 3


class CrawlSettings(BaseModel):
    max_related: int = 10
    max_cached_related: int = 5
    max_seeds: int = 8
    politeness_delay_seconds: float = 0.2


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: DEEPDOCS__CRAWL__MAX_SEEDS=4
        env_prefix="DEEPDOCS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    cache: CacheSettings = CacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
    crawl: CrawlSettings = CrawlSettings()
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
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
