"""
pricewatch/schemas/scraping.py

Request and response schemas for price scraping endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from pricewatch.domain.scraping import (
    PriceRange,
    ScrapedProduct,
    ScrapingOptions,
    ScrapingResult,
)
from pricewatch.scraping.profiles.models import SiteProfile


class PriceRangeRequest(BaseModel):
    min: float
    max: float


class ScrapePricesRequest(BaseModel):
    """
    Batch scrape request. Option bounds are validated by ScrapingOptions so
    invalid values surface as HTTP 400 rather than 422.
    """

    urls: list[str] = Field(..., min_length=1)
    site_keys: list[str] | None = None
    include_out_of_stock: bool = False
    price_range: PriceRangeRequest | None = None
    categories: list[str] | None = None
    keywords: list[str] | None = None
    max_products: int | None = None
    allow_partial_records: bool = False
    persist: bool = False

    def to_options(self) -> ScrapingOptions:
        price_range = None
        if self.price_range is not None:
            price_range = PriceRange(min=self.price_range.min, max=self.price_range.max)
        return ScrapingOptions(
            include_out_of_stock=self.include_out_of_stock,
            price_range=price_range,
            categories=tuple(self.categories) if self.categories else None,
            keywords=tuple(self.keywords) if self.keywords else None,
            max_products=self.max_products,
            allow_partial_records=self.allow_partial_records,
        )


class SiteProfileResponse(BaseModel):
    key: str
    name: str
    base_url: str
    currency_code: str
    min_interval_seconds: float = Field(..., ge=0)
    categories: list[str] = Field(default_factory=list)
    search_url: str | None = None
    product_list_url: str | None = None

    @classmethod
    def from_profile(cls, profile: SiteProfile) -> "SiteProfileResponse":
        return cls(
            key=profile.key,
            name=profile.name,
            base_url=profile.base_url,
            currency_code=profile.price_format.currency_code,
            min_interval_seconds=profile.min_interval_seconds,
            categories=list(profile.categories),
            search_url=profile.search_url,
            product_list_url=profile.product_list_url,
        )


class ScrapedProductResponse(BaseModel):
    product_id: str
    url: str
    title: str | None = None
    price: float | None = None
    original_price: float | None = None
    currency: str
    availability: str
    stock_level: int | None = None
    description: str | None = None
    brand: str | None = None
    sku: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    site_key: str
    site_name: str
    scraped_at: datetime
    origin: str

    @classmethod
    def from_product(cls, product: ScrapedProduct) -> "ScrapedProductResponse":
        payload = product.to_dict()
        payload["scraped_at"] = product.scraped_at
        return cls(**payload)


class ScrapeErrorResponse(BaseModel):
    url: str
    error: str
    kind: str


class SiteScrapeResultResponse(BaseModel):
    """
    API response model for one site's scrape result.
    """

    site_key: str
    site_name: str
    success: bool
    products_requested: int = Field(..., ge=0)
    products_scraped: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    total_products: int = Field(..., ge=0)
    fallback_count: int = Field(..., ge=0)
    products: list[ScrapedProductResponse] = Field(default_factory=list)
    errors: list[ScrapeErrorResponse] = Field(default_factory=list)
    scraped_at: str
    requested_urls: list[str] = Field(default_factory=list)
    records_inserted: int | None = Field(default=None, ge=0)

    @classmethod
    def from_result(
        cls,
        result: ScrapingResult,
        *,
        records_inserted: int | None = None,
    ) -> "SiteScrapeResultResponse":
        return cls(
            site_key=result.site_key,
            site_name=result.site_name,
            success=result.success,
            products_requested=result.products_requested,
            products_scraped=result.products_scraped,
            success_count=result.success_count,
            error_count=result.error_count,
            total_products=result.total_products,
            fallback_count=result.fallback_count,
            products=[ScrapedProductResponse.from_product(product) for product in result.products],
            errors=[ScrapeErrorResponse(**error.to_dict()) for error in result.errors],
            scraped_at=result.scraped_at,
            requested_urls=list(result.requested_urls),
            records_inserted=records_inserted,
        )
