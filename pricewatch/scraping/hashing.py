"""
Stable URL hashing shared by extraction and synthetic fallback.
"""

from __future__ import annotations

import hashlib


def url_digest(url: str) -> bytes:
    return hashlib.sha256(url.strip().encode("utf-8")).digest()


def url_hash(url: str) -> int:
    """
    Return a non-negative 64-bit integer that is stable across processes.
    """

    return int.from_bytes(url_digest(url)[:8], "big")


def build_product_id(site_key: str, url: str) -> str:
    return f"{site_key}-{url_hash(url):016x}"
