"""Text enrichment for scraped products.

Provides a base interface, an adapter for OpenAI-compatible chat APIs and a
deterministic mock for testing. Enrichment is optional: the pipeline runs
unchanged when no enricher is configured.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

from pricewatch.config import ScrapingSettings
from pricewatch.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

MAX_TAGS = 8

_PROMPT_TEMPLATE = (
    "You label grocery products for a price-intelligence catalogue.\n"
    "Return ONLY a JSON array of at most {max_tags} short lowercase tags "
    "(ingredients, dietary attributes, health benefits) for this product:\n\n"
    "{text}"
)


class BaseTextEnricher(ABC):
    """Abstract base for all text enrichers."""

    @abstractmethod
    def enrich(self, text: str) -> list[str]:
        """Derive tags from product text.

        Args:
            text: Product title and description joined by a space.

        Returns:
            Tag strings to merge into the product's existing tags.
        """


class OpenAITextEnricher(BaseTextEnricher):
    """Enricher backed by an OpenAI-compatible chat completion API.

    Uses zero temperature so repeated runs over the same text return the
    same tags.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 256,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialise the OpenAI enricher.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        try:
            from openai import OpenAI  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "openai package is required for OpenAITextEnricher. "
                "Install it with: pip install 'pricewatch[llm]'"
            ) from exc

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        client_kwargs: dict = {"api_key": resolved_key}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    def enrich(self, text: str) -> list[str]:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {
                    "role": "user",
                    "content": _PROMPT_TEMPLATE.format(max_tags=MAX_TAGS, text=text),
                }
            ],
            temperature=0,
            top_p=1,
            max_tokens=self._max_tokens,
            stream=False,
        )
        return parse_tag_response(response.choices[0].message.content or "")


class MockTextEnricher(BaseTextEnricher):
    """Deterministic enricher returning fixed tags regardless of input."""

    def __init__(self, tags: Optional[list[str]] = None) -> None:
        self._tags = list(tags) if tags is not None else ["organic", "non-gmo"]

    def enrich(self, text: str) -> list[str]:
        return list(self._tags)


def parse_tag_response(raw: str) -> list[str]:
    """Parse a model reply into a clean tag list.

    Tolerates markdown code fences around the JSON array. Anything that is
    not a JSON array of strings yields an empty list.
    """
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
        cleaned = cleaned.strip()

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        log_event(logger, logging.WARNING, "enrichment_response_invalid", raw=raw[:200])
        return []
    if not isinstance(payload, list):
        return []

    tags: list[str] = []
    for item in payload:
        if isinstance(item, str) and item.strip():
            tags.append(item.strip().lower())
    return tags[:MAX_TAGS]


def build_text_enricher(settings: ScrapingSettings) -> Optional[BaseTextEnricher]:
    """Return the configured enricher, or None when enrichment is disabled."""
    if not settings.enrichment_enabled:
        return None
    return OpenAITextEnricher(model=settings.enrichment_model)
