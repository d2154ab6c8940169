"""
tests/conftest.py

Shared fakes for the scraping pipeline: a manual clock, canned HTTP
responses and small site profiles. No test touches the network or sleeps.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime, timezone

import pytest
import requests

from pricewatch.config import ScrapingSettings
from pricewatch.scraping.profiles.models import PriceFormat, SiteProfile
from pricewatch.scraping.profiles.registry import SiteProfileRegistry
from pricewatch.scraping.robots import RobotsComplianceChecker

FIXED_NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock advanced only by `sleep` or `advance`."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def total_slept(self) -> float:
        return sum(self.sleeps)


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class FakeSession:
    """
    Stand-in for requests.Session keyed by exact URL.

    Each URL maps to a list of responses (or exceptions) consumed in order;
    the last entry repeats once the list is exhausted. Unknown robots.txt
    URLs answer 404, other unknown URLs raise ConnectionError.
    """

    def __init__(
        self,
        routes: dict[str, object] | None = None,
        *,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.routes: dict[str, list[object]] = {}
        self.calls: list[str] = []
        self.call_times: list[float | None] = []
        self._clock = clock
        self.request_headers: list[dict[str, str]] = []
        self.closed = False
        for url, responses in (routes or {}).items():
            self.add(url, responses)

    def add(self, url: str, responses: object) -> None:
        if not isinstance(responses, list):
            responses = [responses]
        self.routes[url] = list(responses)

    def get(self, url: str, headers=None, timeout=None, allow_redirects=True):
        self.calls.append(url)
        self.call_times.append(self._clock() if self._clock is not None else None)
        self.request_headers.append(dict(headers or {}))
        queue = self.routes.get(url)
        if queue is None:
            if url.endswith("/robots.txt"):
                return FakeResponse(404)
            raise requests.ConnectionError(f"no route for {url}")

        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def page_calls(self) -> list[str]:
        return [url for url in self.calls if not url.endswith("/robots.txt")]

    def page_call_times(self) -> list[float | None]:
        return [
            at for url, at in zip(self.calls, self.call_times) if not url.endswith("/robots.txt")
        ]

    def close(self) -> None:
        self.closed = True


def product_page(
    *,
    title: str | None = "Organic Black Rice",
    price: str | None = "$12.99",
    availability: str | None = "In Stock",
    description: str | None = "Heirloom black rice, rich in antioxidants.",
) -> str:
    parts = ["<html><body>"]
    if title is not None:
        parts.append(f'<h1 class="product-title">{title}</h1>')
    if price is not None:
        parts.append(f'<span class="price">{price}</span>')
    if availability is not None:
        parts.append(f'<div class="stock">{availability}</div>')
    if description is not None:
        parts.append(f'<div class="description">{description}</div>')
    parts.append("</body></html>")
    return "".join(parts)


def make_profile(
    key: str = "shop",
    *,
    name: str = "Test Shop",
    base_url: str = "https://shop.example",
    min_interval_seconds: float = 2.0,
    enabled: bool = True,
    categories: Iterable[str] = ("rice",),
    price_format: PriceFormat | None = None,
) -> SiteProfile:
    return SiteProfile(
        key=key,
        name=name,
        base_url=base_url,
        selectors={
            "title": ["h1.product-title"],
            "price": [".price"],
            "availability": [".stock"],
            "description": [".description"],
        },
        price_format=price_format or PriceFormat(),
        min_interval_seconds=min_interval_seconds,
        enabled=enabled,
        categories=tuple(categories),
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings() -> ScrapingSettings:
    return ScrapingSettings(inter_site_delay_seconds=2.0)


@pytest.fixture()
def session(clock: FakeClock) -> FakeSession:
    return FakeSession(clock=clock)


@pytest.fixture()
def robots_checker(session: FakeSession, clock: FakeClock) -> RobotsComplianceChecker:
    return RobotsComplianceChecker(session=session, clock=clock)


@pytest.fixture()
def profile() -> SiteProfile:
    return make_profile()


@pytest.fixture()
def registry() -> SiteProfileRegistry:
    return SiteProfileRegistry(
        [
            make_profile("alpha", name="Alpha Foods", base_url="https://alpha.example"),
            make_profile("beta", name="Beta Grocer", base_url="https://beta.example"),
            make_profile("gamma", name="Gamma Mart", base_url="https://gamma.example", enabled=False),
        ],
        product_keywords={"rice": ["black rice", "brown rice"], "honey": ["raw honey"]},
    )


@pytest.fixture()
def make_response():
    return FakeResponse


@pytest.fixture()
def profile_factory():
    return make_profile


@pytest.fixture()
def page_factory():
    return product_page


@pytest.fixture()
def session_factory():
    return FakeSession


@pytest.fixture()
def clock_factory():
    return FakeClock
