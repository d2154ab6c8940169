"""
Run competitor price scraping from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from db.session import session_scope
from pricewatch.domain.scraping import PriceRange, ScrapingOptions
from pricewatch.errors import ConfigurationError, OptionsValidationError
from pricewatch.services.price_intelligence_service import PriceIntelligenceService


def _read_urls(args: argparse.Namespace) -> list[str]:
    urls = list(args.urls)
    if args.urls_file:
        lines = Path(args.urls_file).read_text(encoding="utf-8").splitlines()
        urls.extend(line.strip() for line in lines if line.strip() and not line.startswith("#"))
    return urls


def _build_options(args: argparse.Namespace) -> ScrapingOptions:
    price_range = None
    if args.min_price is not None or args.max_price is not None:
        price_range = PriceRange(
            min=args.min_price if args.min_price is not None else 0.0,
            max=args.max_price if args.max_price is not None else float("inf"),
        )
    return ScrapingOptions(
        include_out_of_stock=args.include_out_of_stock,
        price_range=price_range,
        categories=tuple(args.category) if args.category else None,
        keywords=tuple(args.keyword) if args.keyword else None,
        max_products=args.max_products,
        allow_partial_records=args.allow_partial,
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Scrape competitor product prices.")
    parser.add_argument("urls", nargs="*", help="Product page URLs to scrape.")
    parser.add_argument("--urls-file", default=None, help="File with one URL per line.")
    parser.add_argument(
        "--site",
        dest="sites",
        action="append",
        default=None,
        help="Site key to scrape; repeat for several. Defaults to every enabled site.",
    )
    parser.add_argument("--include-out-of-stock", action="store_true")
    parser.add_argument("--min-price", type=float, default=None)
    parser.add_argument("--max-price", type=float, default=None)
    parser.add_argument("--category", action="append", default=None)
    parser.add_argument("--keyword", action="append", default=None)
    parser.add_argument("--max-products", type=int, default=None)
    parser.add_argument(
        "--allow-partial",
        action="store_true",
        help="Keep records that have only a title or only a price.",
    )
    parser.add_argument("--persist", action="store_true", help="Store results in the database.")
    parser.add_argument("--list-sites", action="store_true", help="Print enabled sites and exit.")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    service = PriceIntelligenceService()
    try:
        if args.list_sites:
            payload = [
                {"key": profile.key, "name": profile.name, "base_url": profile.base_url}
                for profile in service.list_sites()
            ]
            print(json.dumps(payload, indent=2))
            return 0

        urls = _read_urls(args)
        if not urls:
            parser.error("at least one URL (or --urls-file) is required")

        try:
            results = service.scrape(urls, options=_build_options(args), site_keys=args.sites)
        except (ConfigurationError, OptionsValidationError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2

        payload = [result.to_dict() for result in results]
        if args.persist:
            with session_scope() as db:
                inserted = service.persist(results, db=db)
            for entry, count in zip(payload, inserted):
                entry["records_inserted"] = count

        print(json.dumps(payload, indent=2))
        return 0
    finally:
        service.close()


if __name__ == "__main__":
    raise SystemExit(main())
