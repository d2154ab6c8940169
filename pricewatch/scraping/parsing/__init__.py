"""
Parsing layer exports.
"""

from pricewatch.scraping.parsing.field_extractor import (
    FieldExtractor,
    normalize_availability,
    parse_count,
    parse_price,
    parse_rating,
)

__all__ = [
    "FieldExtractor",
    "normalize_availability",
    "parse_count",
    "parse_price",
    "parse_rating",
]
