"""
pricewatch/domain/scraping.py

Domain models for competitor product scraping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from pricewatch.errors import OptionsValidationError


class Availability(str, Enum):
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    LIMITED = "limited"
    PRE_ORDER = "pre_order"
    UNKNOWN = "unknown"

    @property
    def is_purchasable(self) -> bool:
        # unknown is treated as unavailable for filtering
        return self in {Availability.IN_STOCK, Availability.LIMITED, Availability.PRE_ORDER}


class ProductOrigin(str, Enum):
    LIVE = "live"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class ScrapedProduct:
    """
    Normalized product record extracted from one competitor page.
    """

    url: str
    product_id: str
    site_key: str
    site_name: str
    scraped_at: datetime
    title: str | None = None
    price: float | None = None
    original_price: float | None = None
    currency: str = "USD"
    availability: Availability = Availability.UNKNOWN
    stock_level: int | None = None
    description: str | None = None
    brand: str | None = None
    sku: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    image_url: str | None = None
    rating: float | None = None
    review_count: int | None = None
    origin: ProductOrigin = ProductOrigin.LIVE

    def __post_init__(self) -> None:
        if self.price is not None and self.price < 0:
            raise ValueError(f"price must be non-negative, got {self.price}")
        if self.original_price is not None and self.original_price < 0:
            raise ValueError(f"original_price must be non-negative, got {self.original_price}")
        if self.review_count is not None and self.review_count < 0:
            raise ValueError(f"review_count must be non-negative, got {self.review_count}")
        if self.rating is not None:
            object.__setattr__(self, "rating", min(5.0, max(0.0, float(self.rating))))
        object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def has_title(self) -> bool:
        return bool(self.title and self.title.strip())

    @property
    def is_complete(self) -> bool:
        """Both title and price were extracted."""
        return self.has_title and self.price is not None

    @property
    def is_empty(self) -> bool:
        """Neither title nor price was extracted."""
        return not self.has_title and self.price is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "url": self.url,
            "title": self.title,
            "price": self.price,
            "original_price": self.original_price,
            "currency": self.currency,
            "availability": self.availability.value,
            "stock_level": self.stock_level,
            "description": self.description,
            "brand": self.brand,
            "sku": self.sku,
            "category": self.category,
            "tags": list(self.tags),
            "image_url": self.image_url,
            "rating": self.rating,
            "review_count": self.review_count,
            "site_key": self.site_key,
            "site_name": self.site_name,
            "scraped_at": self.scraped_at.isoformat(),
            "origin": self.origin.value,
        }


@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float


@dataclass(frozen=True)
class ScrapingOptions:
    """
    Per-call filtering policy applied after each URL settles.
    """

    include_out_of_stock: bool = False
    price_range: PriceRange | None = None
    categories: tuple[str, ...] | None = None
    keywords: tuple[str, ...] | None = None
    max_products: int | None = None
    allow_partial_records: bool = False

    def __post_init__(self) -> None:
        if self.max_products is not None and self.max_products < 1:
            raise OptionsValidationError(
                f"max_products must be a positive integer, got {self.max_products}."
            )
        if self.price_range is not None:
            if self.price_range.min < 0 or self.price_range.max < 0:
                raise OptionsValidationError("price_range bounds must be non-negative.")
            if self.price_range.min > self.price_range.max:
                raise OptionsValidationError(
                    f"price_range.min ({self.price_range.min}) exceeds "
                    f"price_range.max ({self.price_range.max})."
                )
        if self.categories is not None:
            object.__setattr__(self, "categories", tuple(self.categories))
        if self.keywords is not None:
            object.__setattr__(self, "keywords", tuple(self.keywords))

    def accepts(self, product: ScrapedProduct) -> bool:
        """
        Return whether a settled product passes every configured filter.
        """

        if not self.allow_partial_records and not product.is_complete:
            return False

        if not self.include_out_of_stock and not product.availability.is_purchasable:
            return False

        if self.price_range is not None:
            if product.price is None:
                return False
            if product.price < self.price_range.min or product.price > self.price_range.max:
                return False

        if self.categories:
            allowed = {category.strip().lower() for category in self.categories}
            if not product.category or product.category.strip().lower() not in allowed:
                return False

        if self.keywords:
            text = f"{product.title or ''} {product.description or ''}".lower()
            if not any(keyword.lower() in text for keyword in self.keywords if keyword):
                return False

        return True


@dataclass(frozen=True)
class ScrapeError:
    url: str
    error: str
    kind: str = "scraping_error"

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "error": self.error, "kind": self.kind}


@dataclass(frozen=True)
class RealResult:
    """Product extracted from a live page (or served from the result cache)."""

    product: ScrapedProduct
    cached: bool = False


@dataclass(frozen=True)
class FallbackResult:
    """Deterministic synthetic product used when live extraction is unavailable."""

    product: ScrapedProduct
    reason: str


ProductResult = Union[RealResult, FallbackResult]


class UrlStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class UrlOutcome:
    """
    Terminal state of one URL after the orchestrator state machine settles.
    """

    url: str
    status: UrlStatus
    result: ProductResult | None = None
    error: ScrapeError | None = None


@dataclass(frozen=True)
class ScrapingResult:
    """
    Per-site batch outcome handed to persistence and API callers.
    """

    site_key: str
    site_name: str
    products_requested: int
    products_scraped: int
    success_count: int
    error_count: int
    total_products: int
    products: tuple[ScrapedProduct, ...]
    errors: tuple[ScrapeError, ...]
    scraped_at: str
    requested_urls: tuple[str, ...]
    success: bool
    fallback_count: int = 0

    @classmethod
    def failed(
        cls,
        *,
        site_key: str,
        site_name: str,
        urls: list[str] | tuple[str, ...],
        message: str,
        kind: str,
        scraped_at: str,
    ) -> "ScrapingResult":
        errors = tuple(ScrapeError(url=url, error=message, kind=kind) for url in urls)
        return cls(
            site_key=site_key,
            site_name=site_name,
            products_requested=len(urls),
            products_scraped=0,
            success_count=0,
            error_count=len(errors),
            total_products=0,
            products=(),
            errors=errors,
            scraped_at=scraped_at,
            requested_urls=tuple(urls),
            success=False,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "site_key": self.site_key,
            "site_name": self.site_name,
            "success": self.success,
            "products_requested": self.products_requested,
            "products_scraped": self.products_scraped,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "total_products": self.total_products,
            "fallback_count": self.fallback_count,
            "products": [product.to_dict() for product in self.products],
            "errors": [error.to_dict() for error in self.errors],
            "scraped_at": self.scraped_at,
            "requested_urls": list(self.requested_urls),
        }


@dataclass
class ResultBuilder:
    """
    Mutable accumulator used while one site's URL loop is running.
    """

    site_key: str
    site_name: str
    requested_urls: tuple[str, ...]
    scraped_at: str
    products: list[ScrapedProduct] = field(default_factory=list)
    errors: list[ScrapeError] = field(default_factory=list)
    products_scraped: int = 0
    fallback_count: int = 0

    def build(self) -> ScrapingResult:
        return ScrapingResult(
            site_key=self.site_key,
            site_name=self.site_name,
            products_requested=len(self.requested_urls),
            products_scraped=self.products_scraped,
            success_count=len(self.products),
            error_count=len(self.errors),
            total_products=len(self.products),
            products=tuple(self.products),
            errors=tuple(self.errors),
            scraped_at=self.scraped_at,
            requested_urls=self.requested_urls,
            success=len(self.products) > 0,
            fallback_count=self.fallback_count,
        )


