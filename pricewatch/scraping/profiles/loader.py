"""
JSON loader for static site profiles.
"""

from __future__ import annotations

import json
from pathlib import Path

from pricewatch.config import resolve_project_path
from pricewatch.errors import ConfigurationError
from pricewatch.scraping.profiles.models import PriceFormat, SiteProfile

DEFAULT_RATE_LIMIT_MS = 2000.0


def read_profiles_document(config_path: str) -> dict[str, object]:
    """
    Read and minimally validate the profile JSON document.
    """

    path = resolve_project_path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Site profile config file not found: {path}")

    try:
        raw_data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Site profile config is not valid JSON: {path}") from exc
    if not isinstance(raw_data, dict):
        raise ConfigurationError("Invalid site profile config: top level must be an object.")
    return raw_data


def load_site_profiles(*, config_path: str | Path) -> list[SiteProfile]:
    """
    Load site profiles from a JSON file.
    """

    raw_data = read_profiles_document(str(config_path))
    sites = raw_data.get("sites", [])
    if not isinstance(sites, list):
        raise ConfigurationError("Invalid site profile config: 'sites' must be a list.")
    return parse_site_profiles(sites)


def load_product_keywords(*, config_path: str | Path) -> dict[str, list[str]]:
    """
    Load the category -> keyword catalogue used for category detection.
    """

    raw_data = read_profiles_document(str(config_path))
    keywords = raw_data.get("product_keywords", {})
    if not isinstance(keywords, dict):
        return {}

    normalized: dict[str, list[str]] = {}
    for category, values in keywords.items():
        if not isinstance(category, str) or not isinstance(values, list):
            continue
        normalized[category.strip().lower()] = [
            value.strip().lower() for value in values if isinstance(value, str) and value.strip()
        ]
    return normalized


def parse_site_profiles(entries: list[object]) -> list[SiteProfile]:
    parsed: list[SiteProfile] = []
    seen_keys: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            continue

        key = str(entry.get("key", "")).strip().lower()
        name = str(entry.get("name", "")).strip()
        base_url = str(entry.get("base_url", "")).strip()
        if not key or not name or not base_url or key in seen_keys:
            continue
        seen_keys.add(key)

        rate_limit_ms = _optional_float(entry.get("rate_limit_ms"))
        if rate_limit_ms is None:
            rate_limit_ms = DEFAULT_RATE_LIMIT_MS
        parsed.append(
            SiteProfile(
                key=key,
                name=name,
                base_url=base_url.rstrip("/"),
                selectors=_normalize_selectors(entry.get("selectors", {})),
                price_format=_parse_price_format(entry.get("price_format", {})),
                min_interval_seconds=max(0.0, rate_limit_ms / 1000.0),
                user_agent=_optional_str(entry.get("user_agent")),
                headers=_normalize_headers(entry.get("headers", {})),
                enabled=_optional_bool(entry.get("enabled"), True),
                categories=_normalize_categories(entry.get("categories", [])),
                search_url=_optional_str(entry.get("search_url")),
                product_list_url=_optional_str(entry.get("product_list_url")),
            )
        )
    return parsed


def split_selector_candidates(value: str) -> list[str]:
    """
    Split a comma-separated selector string into ordered candidates.

    Commas inside brackets or parentheses (attribute values, `:is(...)`)
    do not split.
    """

    candidates: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []
    for char in value:
        if quote:
            if char == quote:
                quote = None
        elif char in {"'", '"'}:
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth = max(0, depth - 1)
        elif char == "," and depth == 0:
            candidate = "".join(current).strip()
            if candidate:
                candidates.append(candidate)
            current = []
            continue
        current.append(char)

    tail = "".join(current).strip()
    if tail:
        candidates.append(tail)
    return candidates


def _normalize_selectors(selectors: object) -> dict[str, tuple[str, ...]]:
    if not isinstance(selectors, dict):
        return {}

    normalized: dict[str, tuple[str, ...]] = {}
    for key, value in selectors.items():
        if not isinstance(key, str):
            continue
        if isinstance(value, str):
            selector_list = split_selector_candidates(value)
        elif isinstance(value, list):
            selector_list = [
                candidate
                for item in value
                if isinstance(item, str)
                for candidate in split_selector_candidates(item)
            ]
        else:
            selector_list = []
        if selector_list:
            normalized[key.strip().lower()] = tuple(selector_list)
    return normalized


def _parse_price_format(value: object) -> PriceFormat:
    if not isinstance(value, dict):
        return PriceFormat()
    return PriceFormat(
        currency_symbol=_optional_str(value.get("currency_symbol")) or "$",
        currency_code=(_optional_str(value.get("currency_code")) or "USD").upper(),
        decimal_separator=_optional_str(value.get("decimal_separator")) or ".",
        thousands_separator=_optional_str(value.get("thousands_separator")),
    )


def _normalize_headers(headers: object) -> dict[str, str]:
    if not isinstance(headers, dict):
        return {}

    normalized: dict[str, str] = {}
    for key, value in headers.items():
        if not isinstance(key, str) or not isinstance(value, str):
            continue
        if key.strip() and value.strip():
            normalized[key.strip()] = value.strip()
    return normalized


def _normalize_categories(categories: object) -> tuple[str, ...]:
    if not isinstance(categories, list):
        return ()
    return tuple(
        item.strip().lower() for item in categories if isinstance(item, str) and item.strip()
    )


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
