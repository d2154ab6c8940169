"""
Storage layer interface for scrape results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pricewatch.domain.scraping import ScrapingResult


class ProductSink(ABC):
    """
    Destination for per-site scrape results.
    """

    @abstractmethod
    def store(self, result: ScrapingResult) -> int:
        """
        Persist one site result and return the number of product rows inserted.
        """
