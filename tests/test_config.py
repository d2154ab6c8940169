"""
tests/test_config.py

Unit tests for environment-driven scraping settings and .env loading.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from db.config import load_env_files, normalize_postgres_url
from pricewatch.config import get_scraping_settings, resolve_project_path


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_scraping_settings.cache_clear()
    yield
    get_scraping_settings.cache_clear()


class TestGetScrapingSettings:
    def test_reads_prefixed_variables(self, monkeypatch) -> None:
        monkeypatch.setenv("PRICE_SCRAPE_MAX_RETRIES", "4")
        monkeypatch.setenv("PRICE_SCRAPE_USE_REAL_SCRAPING", "false")
        monkeypatch.setenv("PRICE_SCRAPE_INTER_SITE_DELAY_SECONDS", "0.5")
        monkeypatch.setenv("PRICE_SCRAPE_ROUTE_BY_DOMAIN", "yes")

        settings = get_scraping_settings()

        assert settings.max_retries == 4
        assert settings.use_real_scraping is False
        assert settings.inter_site_delay_seconds == pytest.approx(0.5)
        assert settings.route_by_domain is True

    def test_invalid_numbers_fall_back_to_defaults(self, monkeypatch) -> None:
        monkeypatch.setenv("PRICE_SCRAPE_MAX_RETRIES", "many")
        monkeypatch.setenv("PRICE_SCRAPE_CACHE_MAX_ENTRIES", "0")

        settings = get_scraping_settings()

        assert settings.max_retries == 2
        assert settings.cache_max_entries == 1

    def test_profiles_path_is_absolute(self) -> None:
        settings = get_scraping_settings()

        assert Path(settings.profiles_path).is_absolute()
        assert Path(settings.profiles_path).name == "sites.json"


def test_resolve_project_path_keeps_absolute_paths(tmp_path) -> None:
    assert resolve_project_path(str(tmp_path)) == tmp_path


def test_load_env_files_does_not_override_environment(tmp_path, monkeypatch) -> None:
    (tmp_path / ".env").write_text(
        "# comment\n"
        "export PW_TEST_A=from_file\n"
        "PW_TEST_B='quoted value'\n"
        "PW_TEST_C=plain # trailing\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("PW_TEST_A", "from_env")
    for name in ("PW_TEST_B", "PW_TEST_C"):
        # set then delete so monkeypatch removes the file values on teardown
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)

    load_env_files(project_root=tmp_path)

    assert os.environ["PW_TEST_A"] == "from_env"
    assert os.environ["PW_TEST_B"] == "quoted value"
    assert os.environ["PW_TEST_C"] == "plain"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("postgres://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql+psycopg://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
    ],
)
def test_normalize_postgres_url(raw: str, expected: str) -> None:
    assert normalize_postgres_url(raw) == expected
