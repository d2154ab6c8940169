"""
tests/test_orchestrator.py

Tests for the per-site scrape state machine: cache, robots, rate limit,
retries, synthetic fallback, filtering and enrichment.

All HTTP goes through FakeSession and all waiting through FakeClock.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from pricewatch.domain.scraping import (
    FallbackResult,
    ProductOrigin,
    RealResult,
    ScrapingOptions,
    UrlStatus,
)
from pricewatch.errors import ConfigurationError
from pricewatch.scraping.enrichment import BaseTextEnricher, MockTextEnricher
from pricewatch.scraping.orchestrator import SiteScrapeOrchestrator

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
ROBOTS_URL = "https://shop.example/robots.txt"


def _urls(count: int) -> list[str]:
    return [f"https://shop.example/products/item-{index}" for index in range(count)]


@pytest.fixture()
def build(settings, session, robots_checker, clock, profile):
    def _build(**overrides) -> SiteScrapeOrchestrator:
        kwargs = {
            "profile": profile,
            "settings": settings,
            "session": session,
            "robots_checker": robots_checker,
            "clock": clock,
            "sleep": clock.sleep,
            "now": lambda: NOW,
        }
        kwargs.update(overrides)
        return SiteScrapeOrchestrator(**kwargs)

    return _build


# ---------------------------------------------------------------------------
# Live path
# ---------------------------------------------------------------------------


class TestLiveScraping:
    def test_extracts_products(self, build, session, make_response, page_factory) -> None:
        [url] = _urls(1)
        session.add(url, make_response(200, page_factory()))

        result = build().scrape_products([url])

        assert result.success
        assert result.total_products == 1
        product = result.products[0]
        assert product.title == "Organic Black Rice"
        assert product.price == pytest.approx(12.99)
        assert product.origin is ProductOrigin.LIVE
        assert product.scraped_at == NOW
        assert result.scraped_at == NOW.isoformat()

    def test_cache_hit_skips_http(self, build, session, make_response, page_factory) -> None:
        [url] = _urls(1)
        session.add(url, make_response(200, page_factory()))
        orchestrator = build()

        orchestrator.scrape_products([url])
        second = orchestrator.scrape_products([url])

        assert session.page_calls() == [url]
        assert second.total_products == 1
        outcome = orchestrator.process_url(url)
        assert isinstance(outcome.result, RealResult)
        assert outcome.result.cached

    def test_request_headers(self, build, session, make_response, page_factory, profile) -> None:
        [url] = _urls(1)
        session.add(url, make_response(200, page_factory()))
        custom = replace(profile, user_agent="PriceBot/1.0", headers={"X-Trace": "1"})

        build(profile=custom).scrape_products([url])

        headers = session.request_headers[session.calls.index(url)]
        assert headers["User-Agent"] == "PriceBot/1.0"
        assert headers["X-Trace"] == "1"
        assert headers["Accept-Encoding"] == "gzip, deflate"

    def test_three_urls_respect_site_interval(
        self, build, session, make_response, page_factory, clock
    ) -> None:
        urls = _urls(3)
        for url in urls:
            session.add(url, make_response(200, page_factory()))

        build().scrape_products(urls)

        assert clock.total_slept >= 4.0


# ---------------------------------------------------------------------------
# Robots
# ---------------------------------------------------------------------------


class TestRobotsPolicy:
    def test_disallow_all_never_fetches(self, build, session, make_response) -> None:
        session.add(ROBOTS_URL, make_response(200, "User-agent: *\nDisallow: /\n"))
        urls = _urls(2)

        result = build().scrape_products(urls)

        assert session.page_calls() == []
        assert result.total_products == 0
        assert result.error_count == 2
        assert result.errors[0].error.startswith("Blocked by robots.txt")
        assert result.errors[0].kind == "policy_denied"

    def test_blocked_url_is_skipped_without_fallback(self, build, session, make_response) -> None:
        session.add(ROBOTS_URL, make_response(200, "User-agent: *\nDisallow: /\n"))
        [url] = _urls(1)

        outcome = build().process_url(url)

        assert outcome.status is UrlStatus.SKIPPED
        assert outcome.result is None

    def test_crawl_delay_extends_spacing(
        self, build, session, make_response, page_factory, clock
    ) -> None:
        session.add(ROBOTS_URL, make_response(200, "User-agent: *\nCrawl-delay: 7\n"))
        urls = _urls(2)
        for url in urls:
            session.add(url, make_response(200, page_factory()))

        build().scrape_products(urls)

        assert clock.sleeps == [7.0]


# ---------------------------------------------------------------------------
# Retries and fallback
# ---------------------------------------------------------------------------


class TestRetriesAndFallback:
    def test_recovers_after_two_server_errors(
        self, build, session, make_response, page_factory, clock
    ) -> None:
        [url] = _urls(1)
        session.add(
            url,
            [make_response(503), make_response(503), make_response(200, page_factory())],
        )

        result = build().scrape_products([url])

        assert session.page_calls() == [url, url, url]
        assert clock.sleeps == [2.0, 4.0]
        assert result.total_products == 1
        assert result.fallback_count == 0
        assert result.products[0].origin is ProductOrigin.LIVE

    def test_retries_keep_site_spacing(
        self, build, session, make_response, page_factory, profile_factory
    ) -> None:
        urls = _urls(2)
        session.add(
            urls[0],
            [make_response(503), make_response(503), make_response(200, page_factory())],
        )
        session.add(urls[1], make_response(200, page_factory()))

        result = build(profile=profile_factory(min_interval_seconds=5.0)).scrape_products(urls)

        times = session.page_call_times()
        gaps = [later - earlier for earlier, later in zip(times, times[1:])]
        assert session.page_calls() == [urls[0], urls[0], urls[0], urls[1]]
        assert gaps == pytest.approx([5.0, 5.0, 5.0])
        assert result.total_products == 2

    def test_retries_honour_crawl_delay(
        self, build, session, make_response, page_factory
    ) -> None:
        session.add(ROBOTS_URL, make_response(200, "User-agent: *\nCrawl-delay: 7\n"))
        urls = _urls(2)
        session.add(urls[0], [make_response(503), make_response(200, page_factory())])
        session.add(urls[1], make_response(200, page_factory()))

        build().scrape_products(urls)

        times = session.page_call_times()
        gaps = [later - earlier for earlier, later in zip(times, times[1:])]
        assert gaps == pytest.approx([7.0, 7.0])

    def test_exhausted_retries_fall_back_to_synthetic(
        self, build, session, make_response
    ) -> None:
        [url] = _urls(1)
        session.add(url, make_response(503))
        orchestrator = build()

        result = orchestrator.scrape_products([url], ScrapingOptions(include_out_of_stock=True))

        assert len(session.page_calls()) == 3
        assert result.fallback_count == 1
        assert result.products[0].origin is ProductOrigin.SYNTHETIC
        assert result.products[0].brand == "Test Shop"
        assert url not in orchestrator.cache

    def test_exhausted_retries_fail_without_fallback(
        self, build, session, make_response, settings
    ) -> None:
        [url] = _urls(1)
        session.add(url, make_response(404))

        result = build(settings=replace(settings, fallback_to_synthetic=False)).scrape_products([url])

        assert not result.success
        assert result.errors[0].kind == "transport_error"
        assert "HTTP 404" in result.errors[0].error

    def test_connection_errors_are_retried(self, build, session, settings) -> None:
        [url] = _urls(1)

        result = build(
            settings=replace(settings, fallback_to_synthetic=False, max_retries=1)
        ).scrape_products([url])

        assert session.page_calls() == [url, url]
        assert result.errors[0].kind == "transport_error"

    def test_empty_page_is_not_retried(self, build, session, make_response, settings) -> None:
        [url] = _urls(1)
        session.add(url, make_response(200, "<html><body><p>Nothing here</p></body></html>"))

        orchestrator = build(settings=replace(settings, fallback_to_synthetic=False))
        result = orchestrator.scrape_products([url])

        assert session.page_calls() == [url]
        assert result.errors[0].kind == "extraction_empty"

    def test_real_scraping_disabled_uses_fallback_only(
        self, build, session, settings
    ) -> None:
        urls = _urls(4)
        disabled = replace(settings, use_real_scraping=False)
        options = ScrapingOptions(include_out_of_stock=True)

        first = build(settings=disabled).scrape_products(urls, options)
        second = build(settings=disabled).scrape_products(urls, options)

        assert session.calls == []
        assert first.products == second.products
        assert first.fallback_count == 4
        assert all(p.origin is ProductOrigin.SYNTHETIC for p in first.products)

    def test_fallback_outcome_carries_reason(self, build, settings) -> None:
        [url] = _urls(1)

        outcome = build(settings=replace(settings, use_real_scraping=False)).process_url(url)

        assert outcome.status is UrlStatus.SUCCESS
        assert isinstance(outcome.result, FallbackResult)
        assert outcome.result.reason == "Real scraping disabled"


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestFiltering:
    def test_max_products_stops_the_loop(self, build, session, make_response, page_factory) -> None:
        urls = _urls(5)
        for url in urls:
            session.add(url, make_response(200, page_factory()))

        result = build().scrape_products(urls, ScrapingOptions(max_products=2))

        assert result.total_products == 2
        assert result.products_scraped == 2
        assert result.products_requested == 5
        assert len(session.page_calls()) == 2

    def test_filtered_records_are_not_errors(
        self, build, session, make_response, page_factory
    ) -> None:
        [url] = _urls(1)
        session.add(url, make_response(200, page_factory(availability="Out of stock")))

        result = build().scrape_products([url])

        assert result.total_products == 0
        assert result.error_count == 0
        assert result.products_scraped == 1

    def test_partial_record_is_cached_but_filtered(
        self, build, session, make_response, page_factory
    ) -> None:
        [url] = _urls(1)
        session.add(url, make_response(200, page_factory(price=None)))
        orchestrator = build()

        default = orchestrator.scrape_products([url])
        opted_in = orchestrator.scrape_products([url], ScrapingOptions(allow_partial_records=True))

        assert default.total_products == 0
        assert opted_in.total_products == 1
        assert opted_in.products[0].price is None
        assert session.page_calls() == [url]

    def test_keyword_filter(self, build, session, make_response, page_factory) -> None:
        urls = _urls(2)
        session.add(urls[0], make_response(200, page_factory(title="Raw Honey")))
        session.add(urls[1], make_response(200, page_factory(title="Black Rice")))

        result = build().scrape_products(urls, ScrapingOptions(keywords=("honey",)))

        assert [p.url for p in result.products] == [urls[0]]


# ---------------------------------------------------------------------------
# Enrichment and construction
# ---------------------------------------------------------------------------


class _FailingEnricher(BaseTextEnricher):
    def enrich(self, text: str) -> list[str]:
        raise RuntimeError("LLM unavailable")


class TestEnrichment:
    def test_tags_are_merged(self, build, session, make_response, page_factory) -> None:
        [url] = _urls(1)
        session.add(url, make_response(200, page_factory()))

        result = build(enricher=MockTextEnricher(["antioxidant", "gluten-free"])).scrape_products(
            [url]
        )

        assert result.products[0].tags == ("antioxidant", "gluten-free")

    def test_enrichment_failure_keeps_record(
        self, build, session, make_response, page_factory
    ) -> None:
        [url] = _urls(1)
        session.add(url, make_response(200, page_factory()))

        result = build(enricher=_FailingEnricher()).scrape_products([url])

        assert result.total_products == 1
        assert result.products[0].tags == ()


class TestFromRegistry:
    def test_unknown_site_key_raises(self, registry, settings, session, robots_checker) -> None:
        with pytest.raises(ConfigurationError):
            SiteScrapeOrchestrator.from_registry(
                registry,
                "nope",
                settings=settings,
                session=session,
                robots_checker=robots_checker,
            )

    def test_builds_for_known_site(self, registry, settings, session, robots_checker) -> None:
        orchestrator = SiteScrapeOrchestrator.from_registry(
            registry,
            "Alpha",
            settings=settings,
            session=session,
            robots_checker=robots_checker,
        )

        assert orchestrator.profile.key == "alpha"
        assert orchestrator.queue.min_interval_seconds == pytest.approx(2.0)
