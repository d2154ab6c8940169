"""
Per-site scrape orchestration: cache, robots, rate limit, retries and fallback.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime, timezone

import requests

from pricewatch.config import ScrapingSettings
from pricewatch.domain.scraping import (
    FallbackResult,
    RealResult,
    ResultBuilder,
    ScrapedProduct,
    ScrapeError,
    ScrapingOptions,
    ScrapingResult,
    UrlOutcome,
    UrlStatus,
)
from pricewatch.errors import ExtractionEmptyError, PolicyDeniedError, TransportError
from pricewatch.scraping.enrichment import BaseTextEnricher
from pricewatch.scraping.fallback import SyntheticProductGenerator
from pricewatch.scraping.fetch_queue import RateLimitedFetchQueue
from pricewatch.scraping.logging_utils import log_event
from pricewatch.scraping.parsing import FieldExtractor
from pricewatch.scraping.profiles.models import SiteProfile
from pricewatch.scraping.profiles.registry import SiteProfileRegistry
from pricewatch.scraping.result_cache import ResultCache
from pricewatch.scraping.robots import RobotsComplianceChecker

logger = logging.getLogger(__name__)

BASE_REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SiteScrapeOrchestrator:
    """
    Drives every URL for one site through the scrape state machine.

    Each instance owns the site's fetch queue and result cache; the robots
    checker and HTTP session are shared across sites by the caller.
    """

    def __init__(
        self,
        *,
        profile: SiteProfile,
        settings: ScrapingSettings,
        session: requests.Session,
        robots_checker: RobotsComplianceChecker,
        extractor: FieldExtractor | None = None,
        fallback: SyntheticProductGenerator | None = None,
        enricher: BaseTextEnricher | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.profile = profile
        self.settings = settings
        self.session = session
        self.robots_checker = robots_checker
        self.extractor = extractor or FieldExtractor()
        self.fallback = fallback or SyntheticProductGenerator()
        self.enricher = enricher
        self._sleep = sleep
        self._now = now

        self.user_agent = profile.user_agent or settings.default_user_agent
        self.request_headers = {
            "User-Agent": self.user_agent,
            **BASE_REQUEST_HEADERS,
            **profile.headers,
        }
        self.queue = RateLimitedFetchQueue(
            min_interval_seconds=profile.min_interval_seconds,
            name=profile.key,
            clock=clock,
            sleep=sleep,
        )
        self.cache: ResultCache[ScrapedProduct] = ResultCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
            clock=clock,
        )

    @classmethod
    def from_registry(
        cls,
        registry: SiteProfileRegistry,
        site_key: str,
        **kwargs,
    ) -> "SiteScrapeOrchestrator":
        """
        Build an orchestrator for `site_key`; unknown keys raise ConfigurationError.
        """

        profile = registry.require(site_key)
        kwargs.setdefault(
            "fallback",
            SyntheticProductGenerator(product_keywords=registry.product_keywords),
        )
        return cls(profile=profile, **kwargs)

    def scrape_products(
        self,
        urls: Sequence[str],
        options: ScrapingOptions | None = None,
    ) -> ScrapingResult:
        """
        Scrape `urls` in order and return the filtered batch report.
        """

        options = options or ScrapingOptions()
        requested = tuple(urls)
        builder = ResultBuilder(
            site_key=self.profile.key,
            site_name=self.profile.name,
            requested_urls=requested,
            scraped_at=self._now().isoformat(),
        )

        log_event(
            logger,
            logging.INFO,
            "site_scrape_started",
            site=self.profile.key,
            url_count=len(requested),
            real_scraping=self.settings.use_real_scraping,
        )

        for url in requested:
            if options.max_products is not None and len(builder.products) >= options.max_products:
                break

            builder.products_scraped += 1
            outcome = self.process_url(url)

            if outcome.error is not None:
                builder.errors.append(outcome.error)
            if outcome.result is None:
                continue

            product = outcome.result.product
            if not options.accepts(product):
                log_event(
                    logger,
                    logging.DEBUG,
                    "product_filtered",
                    site=self.profile.key,
                    url=url,
                )
                continue

            if isinstance(outcome.result, FallbackResult):
                builder.fallback_count += 1
            builder.products.append(self._enrich(product))

        result = builder.build()
        log_event(
            logger,
            logging.INFO,
            "site_scrape_completed",
            site=self.profile.key,
            products=result.total_products,
            errors=result.error_count,
            fallbacks=result.fallback_count,
            attempted=result.products_scraped,
        )
        return result

    def process_url(self, url: str) -> UrlOutcome:
        """
        Run one URL through the state machine and return its terminal state.
        """

        cached = self.cache.get(url)
        if cached is not None:
            log_event(logger, logging.DEBUG, "cache_hit", site=self.profile.key, url=url)
            return UrlOutcome(
                url=url,
                status=UrlStatus.SUCCESS,
                result=RealResult(product=cached, cached=True),
            )

        if not self.settings.use_real_scraping:
            return self._fallback_or_fail(url, reason="Real scraping disabled", error=None)

        decision = self.robots_checker.is_allowed(url, self.user_agent)
        if not decision.allowed:
            denied = PolicyDeniedError(f"Blocked by robots.txt: {decision.reason}")
            log_event(
                logger,
                logging.WARNING,
                "url_blocked_by_robots",
                site=self.profile.key,
                url=url,
                reason=decision.reason,
            )
            return UrlOutcome(
                url=url,
                status=UrlStatus.SKIPPED,
                error=ScrapeError(url=url, error=str(denied), kind=denied.kind),
            )

        try:
            product = self._fetch_and_extract(url, crawl_delay=decision.crawl_delay)
        except (TransportError, ExtractionEmptyError) as exc:
            log_event(
                logger,
                logging.ERROR,
                "url_scrape_failed",
                site=self.profile.key,
                url=url,
                kind=exc.kind,
                error=str(exc),
            )
            return self._fallback_or_fail(url, reason=str(exc), error=exc)

        self.cache.put(url, product)
        log_event(logger, logging.INFO, "url_scraped", site=self.profile.key, url=url)
        return UrlOutcome(url=url, status=UrlStatus.SUCCESS, result=RealResult(product=product))

    def _fetch_and_extract(self, url: str, *, crawl_delay: float | None = None) -> ScrapedProduct:
        markup = self._fetch_with_retry(url, crawl_delay=crawl_delay)
        product = self.extractor.extract(markup, self.profile, url=url, scraped_at=self._now())
        if product.is_empty:
            raise ExtractionEmptyError(f"No title or price found at {url}")
        return product

    def _fetch_with_retry(self, url: str, *, crawl_delay: float | None = None) -> str:
        """
        Fetch `url`, retrying transport failures with linear backoff.

        Every attempt takes its own queue slot, so retries keep the site's
        spacing; the backoff sleep happens before the attempt is queued.
        """

        last_error: TransportError | None = None

        for attempt in range(self.settings.max_retries + 1):
            try:
                return self.queue.schedule(
                    lambda: self._fetch_page(url),
                    crawl_delay=crawl_delay,
                )
            except TransportError as exc:
                last_error = exc
                log_event(
                    logger,
                    logging.WARNING,
                    "fetch_attempt_failed",
                    site=self.profile.key,
                    url=url,
                    attempt=attempt + 1,
                    status_code=exc.status_code,
                    error=str(exc),
                )

            if attempt >= self.settings.max_retries:
                break
            self._sleep(self.settings.retry_backoff_seconds * (attempt + 1))

        raise TransportError(
            f"Failed to fetch {url} after {self.settings.max_retries + 1} attempts: {last_error}",
            status_code=last_error.status_code if last_error is not None else None,
        )

    def _fetch_page(self, url: str) -> str:
        try:
            response = self.session.get(
                url,
                headers=self.request_headers,
                timeout=self.settings.request_timeout_seconds,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

        if response.status_code >= 400:
            raise TransportError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

    def _fallback_or_fail(
        self,
        url: str,
        *,
        reason: str,
        error: Exception | None,
    ) -> UrlOutcome:
        if self.settings.fallback_to_synthetic:
            result = self.fallback.generate(
                url,
                self.profile,
                reason=reason,
                generated_at=self._now(),
            )
            log_event(
                logger,
                logging.INFO,
                "synthetic_fallback_used",
                site=self.profile.key,
                url=url,
                reason=reason,
            )
            return UrlOutcome(url=url, status=UrlStatus.SUCCESS, result=result)

        kind = getattr(error, "kind", "scraping_error")
        return UrlOutcome(
            url=url,
            status=UrlStatus.FAILED,
            error=ScrapeError(url=url, error=reason, kind=kind),
        )

    def _enrich(self, product: ScrapedProduct) -> ScrapedProduct:
        if self.enricher is None:
            return product

        text = " ".join(part for part in (product.title, product.description) if part)
        if not text:
            return product
        try:
            extra_tags = self.enricher.enrich(text)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "enrichment_failed",
                site=self.profile.key,
                url=product.url,
                error=str(exc),
            )
            return product

        tags = tuple(dict.fromkeys([*product.tags, *(tag for tag in extra_tags if tag)]))
        return replace(product, tags=tags)
