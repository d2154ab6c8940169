"""
pricewatch/services/price_intelligence_service.py

Service orchestration for competitor price scraping.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from functools import lru_cache

import requests
from sqlalchemy.orm import Session

from pricewatch.config import ScrapingSettings, get_scraping_settings, resolve_project_path
from pricewatch.domain.scraping import ScrapingOptions, ScrapingResult
from pricewatch.scraping.coordinator import MultiSiteCoordinator
from pricewatch.scraping.enrichment import build_text_enricher
from pricewatch.scraping.logging_utils import log_event
from pricewatch.scraping.profiles.models import SiteProfile
from pricewatch.scraping.profiles.registry import SiteProfileRegistry
from pricewatch.scraping.robots import RobotsComplianceChecker
from pricewatch.scraping.storage import SQLAlchemyProductSink

logger = logging.getLogger(__name__)


def build_http_session(settings: ScrapingSettings) -> requests.Session:
    session = requests.Session()
    session.max_redirects = settings.max_redirects
    return session


class PriceIntelligenceService:
    """
    Owns the process-wide HTTP session, robots checker and coordinator.
    """

    def __init__(
        self,
        *,
        settings: ScrapingSettings | None = None,
        registry: SiteProfileRegistry | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or get_scraping_settings()
        self._registry = registry or SiteProfileRegistry.from_config_file(
            resolve_project_path(self._settings.profiles_path)
        )
        self._owns_session = session is None
        self._http = session or build_http_session(self._settings)
        self._robots_checker = RobotsComplianceChecker(
            session=self._http,
            timeout_seconds=self._settings.robots_timeout_seconds,
            cache_ttl_seconds=self._settings.robots_cache_ttl_seconds,
            allow_when_unreachable=self._settings.allow_when_robots_unreachable,
            user_agent=self._settings.default_user_agent,
        )
        self._coordinator = MultiSiteCoordinator(
            registry=self._registry,
            settings=self._settings,
            session=self._http,
            robots_checker=self._robots_checker,
            enricher=build_text_enricher(self._settings),
            sleep=sleep,
        )

    @property
    def registry(self) -> SiteProfileRegistry:
        return self._registry

    def list_sites(self) -> list[SiteProfile]:
        return self._registry.list_enabled()

    def scrape(
        self,
        urls: Sequence[str],
        *,
        options: ScrapingOptions | None = None,
        site_keys: Sequence[str] | None = None,
    ) -> list[ScrapingResult]:
        return self._coordinator.scrape_all(urls, options, site_keys=site_keys)

    def persist(self, results: Sequence[ScrapingResult], *, db: Session) -> list[int]:
        """
        Store each site result and return inserted product counts in the same order.
        """

        sink = SQLAlchemyProductSink(session=db, batch_size=self._settings.storage_batch_size)
        return [sink.store(result) for result in results]

    def close(self) -> None:
        self._robots_checker.clear()
        if self._owns_session:
            self._http.close()
        log_event(logger, logging.INFO, "price_service_closed")


@lru_cache(maxsize=1)
def get_price_intelligence_service() -> PriceIntelligenceService:
    """
    Build and cache the price intelligence service.
    """

    return PriceIntelligenceService()
