"""
pricewatch/config.py

Environment-driven settings for the price scraping pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_PROFILES_PATH = "pricewatch/scraping/profiles/sites.json"


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def resolve_project_path(raw_path: str) -> Path:
    """
    Resolve a possibly relative path against the project root.
    """

    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


@dataclass(frozen=True)
class ScrapingSettings:
    """
    Runtime settings for the scraping pipeline.

    Every field has a default so callers (and tests) can build settings
    directly; `get_scraping_settings()` overlays environment variables.
    """

    profiles_path: str = DEFAULT_PROFILES_PATH
    default_user_agent: str = DEFAULT_USER_AGENT
    request_timeout_seconds: float = 30.0
    robots_timeout_seconds: float = 5.0
    robots_cache_ttl_seconds: float = 3600.0
    allow_when_robots_unreachable: bool = True
    max_retries: int = 2
    retry_backoff_seconds: float = 2.0
    max_redirects: int = 5
    use_real_scraping: bool = True
    fallback_to_synthetic: bool = True
    cache_ttl_seconds: float = 3600.0
    cache_max_entries: int = 100
    inter_site_delay_seconds: float = 2.0
    route_by_domain: bool = False
    enrichment_enabled: bool = False
    enrichment_model: str = "gpt-4o-mini"
    storage_batch_size: int = 1000


@lru_cache(maxsize=1)
def get_scraping_settings() -> ScrapingSettings:
    """
    Return cached scraping settings from environment variables.
    """

    profiles_path = _get_str_env("PRICE_SCRAPE_PROFILES_PATH", DEFAULT_PROFILES_PATH)
    return ScrapingSettings(
        profiles_path=str(resolve_project_path(profiles_path)),
        default_user_agent=_get_str_env("PRICE_SCRAPE_USER_AGENT", DEFAULT_USER_AGENT),
        request_timeout_seconds=max(
            1.0,
            _get_float_env("PRICE_SCRAPE_REQUEST_TIMEOUT_SECONDS", 30.0),
        ),
        robots_timeout_seconds=max(
            1.0,
            _get_float_env("PRICE_SCRAPE_ROBOTS_TIMEOUT_SECONDS", 5.0),
        ),
        robots_cache_ttl_seconds=max(
            1.0,
            _get_float_env("PRICE_SCRAPE_ROBOTS_CACHE_TTL_SECONDS", 3600.0),
        ),
        allow_when_robots_unreachable=_get_bool_env(
            "PRICE_SCRAPE_ALLOW_WHEN_ROBOTS_UNREACHABLE",
            True,
        ),
        max_retries=max(0, _get_int_env("PRICE_SCRAPE_MAX_RETRIES", 2)),
        retry_backoff_seconds=max(
            0.0,
            _get_float_env("PRICE_SCRAPE_RETRY_BACKOFF_SECONDS", 2.0),
        ),
        max_redirects=max(0, _get_int_env("PRICE_SCRAPE_MAX_REDIRECTS", 5)),
        use_real_scraping=_get_bool_env("PRICE_SCRAPE_USE_REAL_SCRAPING", True),
        fallback_to_synthetic=_get_bool_env("PRICE_SCRAPE_FALLBACK_TO_SYNTHETIC", True),
        cache_ttl_seconds=max(1.0, _get_float_env("PRICE_SCRAPE_CACHE_TTL_SECONDS", 3600.0)),
        cache_max_entries=max(1, _get_int_env("PRICE_SCRAPE_CACHE_MAX_ENTRIES", 100)),
        inter_site_delay_seconds=max(
            0.0,
            _get_float_env("PRICE_SCRAPE_INTER_SITE_DELAY_SECONDS", 2.0),
        ),
        route_by_domain=_get_bool_env("PRICE_SCRAPE_ROUTE_BY_DOMAIN", False),
        enrichment_enabled=_get_bool_env("PRICE_SCRAPE_ENRICHMENT_ENABLED", False),
        enrichment_model=_get_str_env("PRICE_SCRAPE_ENRICHMENT_MODEL", "gpt-4o-mini"),
        storage_batch_size=max(1, _get_int_env("PRICE_SCRAPE_STORAGE_BATCH_SIZE", 1000)),
    )
