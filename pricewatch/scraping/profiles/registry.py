"""
Keyed registry of static site profiles.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from pricewatch.errors import ConfigurationError
from pricewatch.scraping.profiles.loader import load_product_keywords, load_site_profiles
from pricewatch.scraping.profiles.models import SiteProfile


class SiteProfileRegistry:
    """
    Read-only lookups over site profiles loaded at process start.

    Iteration order is the order profiles were supplied in, which is the
    order the coordinator visits sites.
    """

    def __init__(
        self,
        profiles: Iterable[SiteProfile],
        *,
        product_keywords: Mapping[str, list[str]] | None = None,
    ) -> None:
        self._profiles: dict[str, SiteProfile] = {}
        for profile in profiles:
            if profile.key in self._profiles:
                raise ConfigurationError(f"Duplicate site profile key '{profile.key}'.")
            self._profiles[profile.key] = profile
        self._product_keywords = {
            category: list(keywords) for category, keywords in (product_keywords or {}).items()
        }

    @classmethod
    def from_config_file(cls, config_path: str | Path) -> "SiteProfileRegistry":
        return cls(
            load_site_profiles(config_path=config_path),
            product_keywords=load_product_keywords(config_path=config_path),
        )

    def get(self, key: str) -> SiteProfile | None:
        return self._profiles.get(key.strip().lower())

    def require(self, key: str) -> SiteProfile:
        """
        Return the profile for `key` or raise ConfigurationError.
        """

        profile = self.get(key)
        if profile is None:
            allowed = ", ".join(sorted(self._profiles))
            raise ConfigurationError(f"Unknown site key '{key}'. Available sites: {allowed}.")
        return profile

    def list_enabled(self) -> list[SiteProfile]:
        return [profile for profile in self._profiles.values() if profile.enabled]

    def list_by_category(self, tag: str) -> list[SiteProfile]:
        normalized = tag.strip().lower()
        return [profile for profile in self.list_enabled() if normalized in profile.categories]

    def keys(self) -> list[str]:
        return list(self._profiles)

    @property
    def product_keywords(self) -> dict[str, list[str]]:
        return {category: list(keywords) for category, keywords in self._product_keywords.items()}

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
