"""
pricewatch/errors.py

Exception taxonomy for the price scraping pipeline.
"""

from __future__ import annotations


class ScrapingError(Exception):
    """Base exception for scraping pipeline failures."""

    kind = "scraping_error"


class ConfigurationError(ScrapingError):
    """Raised when a site key or profile configuration is unusable."""

    kind = "configuration_error"


class PolicyDeniedError(ScrapingError):
    """Raised when robots.txt forbids fetching a URL."""

    kind = "policy_denied"


class TransportError(ScrapingError):
    """Raised on timeouts, connection failures and non-success HTTP statuses."""

    kind = "transport_error"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionEmptyError(ScrapingError):
    """Raised when a fetched page yields neither a title nor a price."""

    kind = "extraction_empty"


class OptionsValidationError(ScrapingError, ValueError):
    """Raised when scraping options are malformed."""

    kind = "validation_error"
