"""
Site profile configuration models.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import urlparse

SELECTOR_FIELDS = (
    "title",
    "price",
    "original_price",
    "availability",
    "stock_level",
    "description",
    "brand",
    "sku",
    "category",
    "image",
    "rating",
    "reviews",
)


@dataclass(frozen=True)
class PriceFormat:
    """
    Price conventions for one site.
    """

    currency_symbol: str = "$"
    currency_code: str = "USD"
    decimal_separator: str = "."
    thousands_separator: str | None = None

    @property
    def effective_thousands_separator(self) -> str:
        if self.thousands_separator:
            return self.thousands_separator
        return "." if self.decimal_separator == "," else ","


@dataclass(frozen=True)
class SiteProfile:
    """
    One competitor site scrape target configuration.
    """

    key: str
    name: str
    base_url: str
    selectors: Mapping[str, Sequence[str]] = field(default_factory=dict)
    price_format: PriceFormat = field(default_factory=PriceFormat)
    min_interval_seconds: float = 2.0
    user_agent: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    enabled: bool = True
    categories: tuple[str, ...] = ()
    search_url: str | None = None
    product_list_url: str | None = None

    def __post_init__(self) -> None:
        # selectors and headers are held as read-only views
        object.__setattr__(
            self,
            "selectors",
            MappingProxyType({name: tuple(values) for name, values in self.selectors.items()}),
        )
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def selectors_for(self, field_name: str) -> tuple[str, ...]:
        return self.selectors.get(field_name, ())

    @property
    def host(self) -> str:
        return urlparse(self.base_url).netloc.lower()

    def owns_url(self, url: str) -> bool:
        """
        Return whether `url` points at this site's host (or a subdomain of it).
        """

        netloc = urlparse(url).netloc.lower()
        if not netloc:
            return False
        bare_host = self.host.removeprefix("www.")
        bare_netloc = netloc.removeprefix("www.")
        return bare_netloc == bare_host or bare_netloc.endswith(f".{bare_host}")
