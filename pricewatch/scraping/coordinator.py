"""
Multi-site coordinator running one orchestrator per enabled site profile.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

import requests

from pricewatch.config import ScrapingSettings
from pricewatch.domain.scraping import ScrapingOptions, ScrapingResult
from pricewatch.errors import ConfigurationError, ScrapingError
from pricewatch.scraping.enrichment import BaseTextEnricher
from pricewatch.scraping.fallback import SyntheticProductGenerator
from pricewatch.scraping.logging_utils import log_event
from pricewatch.scraping.orchestrator import SiteScrapeOrchestrator
from pricewatch.scraping.parsing import FieldExtractor
from pricewatch.scraping.profiles.models import SiteProfile
from pricewatch.scraping.profiles.registry import SiteProfileRegistry
from pricewatch.scraping.robots import RobotsComplianceChecker

logger = logging.getLogger(__name__)


class MultiSiteCoordinator:
    """
    Runs a URL batch across site profiles, one site at a time.

    Orchestrators are created lazily and reused across calls so each site's
    result cache and fetch spacing persist for the coordinator's lifetime.
    """

    def __init__(
        self,
        *,
        registry: SiteProfileRegistry,
        settings: ScrapingSettings,
        session: requests.Session,
        robots_checker: RobotsComplianceChecker,
        enricher: BaseTextEnricher | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._session = session
        self._robots_checker = robots_checker
        self._enricher = enricher
        self._clock = clock
        self._sleep = sleep
        self._extractor = FieldExtractor()
        self._fallback = SyntheticProductGenerator(product_keywords=registry.product_keywords)
        self._orchestrators: dict[str, SiteScrapeOrchestrator] = {}

    def orchestrator_for(self, site_key: str) -> SiteScrapeOrchestrator:
        profile = self._registry.require(site_key)
        orchestrator = self._orchestrators.get(profile.key)
        if orchestrator is None:
            orchestrator = SiteScrapeOrchestrator(
                profile=profile,
                settings=self._settings,
                session=self._session,
                robots_checker=self._robots_checker,
                extractor=self._extractor,
                fallback=self._fallback,
                enricher=self._enricher,
                clock=self._clock,
                sleep=self._sleep,
            )
            self._orchestrators[profile.key] = orchestrator
        return orchestrator

    def scrape_all(
        self,
        urls: Sequence[str],
        options: ScrapingOptions | None = None,
        site_keys: Sequence[str] | None = None,
    ) -> list[ScrapingResult]:
        """
        Scrape `urls` on every selected site and return one result per site.
        """

        profiles = self.select_profiles(site_keys)
        if not profiles:
            raise ConfigurationError("No enabled sites matched the run criteria.")

        results: list[ScrapingResult] = []
        for index, profile in enumerate(profiles):
            if index > 0 and self._settings.inter_site_delay_seconds > 0:
                self._sleep(self._settings.inter_site_delay_seconds)

            site_urls = self._urls_for(profile, urls)
            try:
                result = self.orchestrator_for(profile.key).scrape_products(site_urls, options)
            except Exception as exc:
                kind = exc.kind if isinstance(exc, ScrapingError) else "scraping_error"
                result = ScrapingResult.failed(
                    site_key=profile.key,
                    site_name=profile.name,
                    urls=list(site_urls),
                    message=str(exc),
                    kind=kind,
                    scraped_at=datetime.now(timezone.utc).isoformat(),
                )
                log_event(
                    logger,
                    logging.ERROR,
                    "site_scrape_failed",
                    site=profile.key,
                    error=str(exc),
                )
            results.append(result)

        log_event(
            logger,
            logging.INFO,
            "batch_scrape_completed",
            sites=len(results),
            products=sum(result.total_products for result in results),
            errors=sum(result.error_count for result in results),
        )
        return results

    def select_profiles(self, site_keys: Sequence[str] | None = None) -> list[SiteProfile]:
        enabled = self._registry.list_enabled()
        if not site_keys:
            return enabled

        normalized = {key.strip().lower() for key in site_keys if key.strip()}
        if not normalized:
            return enabled
        unknown = sorted(key for key in normalized if key not in self._registry)
        if unknown:
            raise ConfigurationError(
                f"Unknown site key(s): {', '.join(unknown)}. "
                f"Available: {', '.join(self._registry.keys())}"
            )
        return [profile for profile in enabled if profile.key in normalized]

    def _urls_for(self, profile: SiteProfile, urls: Sequence[str]) -> list[str]:
        if not self._settings.route_by_domain:
            return list(urls)
        return [url for url in urls if profile.owns_url(url)]
