"""
tests/test_site_profiles.py

Unit tests for site profile loading and the profile registry.
"""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from pricewatch.config import DEFAULT_PROFILES_PATH
from pricewatch.errors import ConfigurationError
from pricewatch.scraping.profiles.loader import (
    load_product_keywords,
    load_site_profiles,
    split_selector_candidates,
)
from pricewatch.scraping.profiles.registry import SiteProfileRegistry


def _write_config(tmp_path, payload) -> str:
    path = tmp_path / "sites.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


# ---------------------------------------------------------------------------
# Selector splitting
# ---------------------------------------------------------------------------


class TestSplitSelectorCandidates:
    def test_splits_on_top_level_commas(self) -> None:
        assert split_selector_candidates(".price, .sale-price ,span.cost") == [
            ".price",
            ".sale-price",
            "span.cost",
        ]

    def test_keeps_commas_inside_attribute_values(self) -> None:
        assert split_selector_candidates('meta[content="a,b"], .title') == [
            'meta[content="a,b"]',
            ".title",
        ]

    def test_keeps_commas_inside_pseudo_class_arguments(self) -> None:
        assert split_selector_candidates(":is(h1, h2).name, .fallback") == [
            ":is(h1, h2).name",
            ".fallback",
        ]


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class TestLoadSiteProfiles:
    def test_parses_rate_limit_and_price_format(self, tmp_path) -> None:
        path = _write_config(
            tmp_path,
            {
                "sites": [
                    {
                        "key": "EU_Shop",
                        "name": "EU Shop",
                        "base_url": "https://eu.example/",
                        "selectors": {"Title": "h1, .name", "price": [".price"]},
                        "price_format": {
                            "currency_symbol": "€",
                            "currency_code": "eur",
                            "decimal_separator": ",",
                        },
                        "rate_limit_ms": 3500,
                        "categories": ["Rice", " "],
                    }
                ]
            },
        )

        [profile] = load_site_profiles(config_path=path)

        assert profile.key == "eu_shop"
        assert profile.base_url == "https://eu.example"
        assert profile.selectors_for("title") == ("h1", ".name")
        assert profile.min_interval_seconds == pytest.approx(3.5)
        assert profile.price_format.currency_code == "EUR"
        assert profile.price_format.effective_thousands_separator == "."
        assert profile.categories == ("rice",)

    def test_defaults_rate_limit_to_two_seconds(self, tmp_path) -> None:
        path = _write_config(
            tmp_path,
            {"sites": [{"key": "a", "name": "A", "base_url": "https://a.example"}]},
        )

        [profile] = load_site_profiles(config_path=path)

        assert profile.min_interval_seconds == pytest.approx(2.0)
        assert profile.enabled is True

    def test_skips_incomplete_and_duplicate_entries(self, tmp_path) -> None:
        path = _write_config(
            tmp_path,
            {
                "sites": [
                    {"key": "a", "name": "A", "base_url": "https://a.example"},
                    {"key": "a", "name": "A again", "base_url": "https://a2.example"},
                    {"key": "b", "name": "", "base_url": "https://b.example"},
                    "not-a-dict",
                ]
            },
        )

        profiles = load_site_profiles(config_path=path)

        assert [profile.name for profile in profiles] == ["A"]

    def test_missing_file_raises_configuration_error(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError):
            load_site_profiles(config_path=str(tmp_path / "missing.json"))

    def test_invalid_json_raises_configuration_error(self, tmp_path) -> None:
        path = tmp_path / "sites.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_site_profiles(config_path=str(path))

    def test_sites_must_be_a_list(self, tmp_path) -> None:
        path = _write_config(tmp_path, {"sites": {"key": "a"}})

        with pytest.raises(ConfigurationError):
            load_site_profiles(config_path=path)

    def test_product_keywords_are_lowercased(self, tmp_path) -> None:
        path = _write_config(
            tmp_path,
            {"sites": [], "product_keywords": {"Rice": ["Black Rice", "", 3]}},
        )

        assert load_product_keywords(config_path=path) == {"rice": ["black rice"]}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestSiteProfileRegistry:
    def test_bundled_profiles_load(self) -> None:
        registry = SiteProfileRegistry.from_config_file(DEFAULT_PROFILES_PATH)

        assert len(registry) == 8
        assert registry.keys()[0] == "whole_foods"
        amazon = registry.require("amazon_organic")
        assert amazon.min_interval_seconds == pytest.approx(5.0)
        assert amazon.user_agent
        assert "rice" in registry.product_keywords

    def test_lookup_is_case_insensitive(self, registry) -> None:
        assert registry.get(" ALPHA ").name == "Alpha Foods"
        assert "Beta" in registry
        assert "unknown" not in registry

    def test_require_unknown_key_lists_available_sites(self, registry) -> None:
        with pytest.raises(ConfigurationError, match="alpha, beta, gamma"):
            registry.require("delta")

    def test_list_enabled_preserves_order(self, registry) -> None:
        assert [profile.key for profile in registry.list_enabled()] == ["alpha", "beta"]

    def test_list_by_category_skips_disabled(self, registry) -> None:
        assert [profile.key for profile in registry.list_by_category("RICE")] == ["alpha", "beta"]
        assert registry.list_by_category("honey") == []

    def test_duplicate_keys_are_rejected(self, profile_factory) -> None:
        with pytest.raises(ConfigurationError):
            SiteProfileRegistry([profile_factory("dup"), profile_factory("dup")])


class TestProfileImmutability:
    def test_selectors_and_headers_are_read_only(self, profile_factory) -> None:
        profile = replace(profile_factory(), headers={"X-Trace": "1"})

        with pytest.raises(TypeError):
            profile.selectors["title"] = ["h2"]
        with pytest.raises(TypeError):
            profile.headers["X-Trace"] = "2"
        assert profile.selectors_for("title") == ("h1.product-title",)
        assert dict(profile.headers) == {"X-Trace": "1"}

    def test_caller_dicts_do_not_leak_into_profile(self, profile_factory) -> None:
        headers = {"X-Trace": "1"}
        profile = replace(profile_factory(), headers=headers)

        headers["X-Trace"] = "changed"

        assert profile.headers["X-Trace"] == "1"


class TestOwnsUrl:
    def test_matches_host_with_or_without_www(self, profile_factory) -> None:
        profile = profile_factory(base_url="https://www.shop.example")

        assert profile.owns_url("https://shop.example/p/1")
        assert profile.owns_url("https://www.shop.example/p/1")
        assert profile.owns_url("https://m.shop.example/p/1")
        assert not profile.owns_url("https://othershop.example/p/1")
        assert not profile.owns_url("not a url")
