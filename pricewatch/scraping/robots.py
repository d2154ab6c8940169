"""
robots.txt compliance checker with a domain-keyed policy cache.

Lifecycle: one `RobotsComplianceChecker` is constructed at process start
(see `PriceIntelligenceService`) and passed by reference to every
orchestrator. Policies are per domain, so sharing is safe; cache writes are
whole-entry replacements, so a concurrent duplicate fetch only wastes a
request. Call `clear()` at shutdown.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from urllib.parse import urlparse

import requests

from pricewatch.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

_DIRECTIVE_ALIASES = {
    "user-agent": "user-agent",
    "useragent": "user-agent",
    "user agent": "user-agent",
    "allow": "allow",
    "disallow": "disallow",
    "crawl-delay": "crawl-delay",
    "crawldelay": "crawl-delay",
}


class RobotsParseError(ValueError):
    """Raised when a fetched robots.txt body cannot be interpreted safely."""


@dataclass(frozen=True)
class RobotsDecision:
    allowed: bool
    crawl_delay: float | None = None
    reason: str | None = None


@dataclass(frozen=True)
class RobotsRule:
    path: str
    allowed: bool

    def matches(self, path: str) -> bool:
        if "*" not in self.path and not self.path.endswith("$"):
            return path.startswith(self.path)
        return _compile_rule_pattern(self.path).match(path) is not None

    @property
    def specificity(self) -> int:
        return len(self.path)


@dataclass
class RobotsGroup:
    user_agents: list[str] = field(default_factory=list)
    rules: list[RobotsRule] = field(default_factory=list)
    crawl_delay: float | None = None


@dataclass(frozen=True)
class RobotsRuleset:
    """
    Parsed robots.txt groups for one domain.
    """

    groups: tuple[RobotsGroup, ...] = ()

    def group_for(self, user_agent: str) -> RobotsGroup | None:
        """
        Return the most specific group naming `user_agent`, else the `*` group.
        """

        agent = user_agent.lower()
        best: RobotsGroup | None = None
        best_length = 0
        wildcard: RobotsGroup | None = None
        for group in self.groups:
            for token in group.user_agents:
                if token == "*":
                    wildcard = wildcard or group
                elif token in agent and len(token) > best_length:
                    best = group
                    best_length = len(token)
        return best or wildcard

    def evaluate(self, path: str, user_agent: str) -> RobotsDecision:
        group = self.group_for(user_agent)
        if group is None:
            return RobotsDecision(allowed=True)

        winner: RobotsRule | None = None
        for rule in group.rules:
            if not rule.path:
                # empty Disallow means "allow everything"
                continue
            if not rule.matches(path):
                continue
            if (
                winner is None
                or rule.specificity > winner.specificity
                or (rule.specificity == winner.specificity and rule.allowed)
            ):
                winner = rule

        if winner is None or winner.allowed:
            return RobotsDecision(allowed=True, crawl_delay=group.crawl_delay)
        return RobotsDecision(
            allowed=False,
            crawl_delay=group.crawl_delay,
            reason=f"Disallow: {winner.path}",
        )


def parse_robots_txt(content: str) -> RobotsRuleset:
    """
    Parse a robots.txt body into groups.

    Raises RobotsParseError on input that does not look like a robots file:
    markup bodies, directive lines without a colon, rules that precede every
    User-agent line and non-numeric crawl delays.
    """

    stripped = content.lstrip("\ufeff").strip()
    if stripped.startswith("<"):
        raise RobotsParseError("robots.txt body looks like markup")

    groups: list[RobotsGroup] = []
    current: RobotsGroup | None = None
    in_agent_block = False

    for line_number, raw_line in enumerate(stripped.splitlines(), start=1):
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        if ":" not in line:
            raise RobotsParseError(f"line {line_number}: missing ':' separator")

        raw_key, raw_value = line.split(":", 1)
        directive = _DIRECTIVE_ALIASES.get(raw_key.strip().lower())
        value = raw_value.strip()

        if directive == "user-agent":
            if current is None or not in_agent_block:
                current = RobotsGroup()
                groups.append(current)
            current.user_agents.append(value.lower())
            in_agent_block = True
            continue

        if directive is None:
            # sitemap, host and other extensions do not affect access
            continue

        in_agent_block = False
        if current is None:
            raise RobotsParseError(f"line {line_number}: '{raw_key.strip()}' before any User-agent")

        if directive == "crawl-delay":
            try:
                delay = float(value)
            except ValueError as exc:
                raise RobotsParseError(f"line {line_number}: invalid Crawl-delay '{value}'") from exc
            if delay < 0:
                raise RobotsParseError(f"line {line_number}: negative Crawl-delay")
            current.crawl_delay = delay
        else:
            current.rules.append(RobotsRule(path=value, allowed=directive == "allow"))

    return RobotsRuleset(groups=tuple(groups))


@dataclass(frozen=True)
class _CacheEntry:
    ruleset: RobotsRuleset | None
    fetched_at: float
    denial_reason: str | None = None


class RobotsComplianceChecker:
    """
    Fetches, caches and evaluates robots.txt policies per domain.
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        timeout_seconds: float = 5.0,
        cache_ttl_seconds: float = 3600.0,
        allow_when_unreachable: bool = True,
        user_agent: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session = session
        self._user_agent = user_agent
        self._timeout_seconds = timeout_seconds
        self._cache_ttl_seconds = cache_ttl_seconds
        self._allow_when_unreachable = allow_when_unreachable
        self._clock = clock
        self._cache: dict[str, _CacheEntry] = {}

    def is_allowed(self, url: str, user_agent: str = "*") -> RobotsDecision:
        """
        Return the allow/deny decision and crawl delay for fetching `url`.
        """

        parsed = urlparse(url)
        domain = parsed.netloc.lower()
        if not domain:
            return RobotsDecision(allowed=False, reason=f"Cannot derive domain from url={url}")

        path = parsed.path or "/"
        if parsed.query:
            path = f"{path}?{parsed.query}"

        entry = self._cached_entry(domain)
        if entry is None:
            entry = self._fetch(
                scheme=parsed.scheme or "https",
                domain=domain,
                user_agent=user_agent if user_agent != "*" else self._user_agent,
            )
            self._cache[domain] = entry

        if entry.denial_reason is not None:
            return RobotsDecision(allowed=False, reason=entry.denial_reason)
        if entry.ruleset is None:
            if self._allow_when_unreachable:
                return RobotsDecision(allowed=True)
            return RobotsDecision(allowed=False, reason="robots.txt unavailable")
        return entry.ruleset.evaluate(path, user_agent)

    def clear(self) -> None:
        self._cache.clear()

    def cached_domains(self) -> list[str]:
        return list(self._cache)

    def _cached_entry(self, domain: str) -> _CacheEntry | None:
        now = self._clock()
        self._sweep(now)
        entry = self._cache.get(domain)
        if entry is None or now - entry.fetched_at >= self._cache_ttl_seconds:
            return None
        return entry

    def _sweep(self, now: float) -> None:
        cutoff = 2 * self._cache_ttl_seconds
        stale = [domain for domain, entry in list(self._cache.items()) if now - entry.fetched_at >= cutoff]
        for domain in stale:
            self._cache.pop(domain, None)

    def _fetch(self, *, scheme: str, domain: str, user_agent: str | None) -> _CacheEntry:
        robots_url = f"{scheme}://{domain}/robots.txt"
        headers = {"User-Agent": user_agent} if user_agent else {}
        try:
            response = self._session.get(
                robots_url,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            log_event(
                logger,
                logging.WARNING,
                "robots_fetch_failed",
                domain=domain,
                robots_url=robots_url,
                fallback_allow=self._allow_when_unreachable,
                error=str(exc),
            )
            return _CacheEntry(ruleset=None, fetched_at=self._clock())

        if response.status_code >= 400:
            # missing robots.txt imposes no restriction; 5xx counts as unreachable
            log_event(
                logger,
                logging.INFO if response.status_code < 500 else logging.WARNING,
                "robots_unavailable",
                domain=domain,
                robots_url=robots_url,
                status_code=response.status_code,
            )
            if response.status_code < 500:
                return _CacheEntry(ruleset=RobotsRuleset(), fetched_at=self._clock())
            return _CacheEntry(ruleset=None, fetched_at=self._clock())

        try:
            ruleset = parse_robots_txt(response.text or "")
        except RobotsParseError as exc:
            log_event(
                logger,
                logging.WARNING,
                "robots_parse_failed",
                domain=domain,
                robots_url=robots_url,
                error=str(exc),
            )
            return _CacheEntry(
                ruleset=None,
                fetched_at=self._clock(),
                denial_reason=f"Unparseable robots.txt: {exc}",
            )

        log_event(
            logger,
            logging.INFO,
            "robots_loaded",
            domain=domain,
            robots_url=robots_url,
            groups=len(ruleset.groups),
        )
        return _CacheEntry(ruleset=ruleset, fetched_at=self._clock())


def _compile_rule_pattern(rule_path: str) -> re.Pattern[str]:
    anchored = rule_path.endswith("$")
    body = rule_path[:-1] if anchored else rule_path
    pattern = ".*".join(re.escape(part) for part in body.split("*"))
    return re.compile(pattern + ("$" if anchored else ""))
