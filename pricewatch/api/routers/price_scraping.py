"""
pricewatch/api/routers/price_scraping.py

Competitor price scraping endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from db.session import session_scope
from pricewatch.errors import ConfigurationError, OptionsValidationError
from pricewatch.schemas.scraping import (
    ScrapePricesRequest,
    SiteProfileResponse,
    SiteScrapeResultResponse,
)
from pricewatch.services.price_intelligence_service import (
    PriceIntelligenceService,
    get_price_intelligence_service,
)

router = APIRouter(tags=["price-scraping"])


@router.get("/price-sites", response_model=list[SiteProfileResponse])
def list_price_sites(
    service: PriceIntelligenceService = Depends(get_price_intelligence_service),
) -> list[SiteProfileResponse]:
    """
    List enabled competitor site profiles.
    """

    return [SiteProfileResponse.from_profile(profile) for profile in service.list_sites()]


@router.post("/scrape-prices", response_model=list[SiteScrapeResultResponse])
def scrape_prices(
    request: ScrapePricesRequest,
    service: PriceIntelligenceService = Depends(get_price_intelligence_service),
) -> list[SiteScrapeResultResponse]:
    """
    Scrape the given URLs across all enabled sites, or the selected ones.
    """

    try:
        results = service.scrape(
            request.urls,
            options=request.to_options(),
            site_keys=request.site_keys,
        )
    except (ConfigurationError, OptionsValidationError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    inserted: list[int | None] = [None] * len(results)
    if request.persist:
        with session_scope() as db:
            inserted = list(service.persist(results, db=db))

    return [
        SiteScrapeResultResponse.from_result(result, records_inserted=count)
        for result, count in zip(results, inserted)
    ]
