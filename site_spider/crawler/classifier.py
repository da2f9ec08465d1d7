# site_spider/crawler/classifier.py
"""
URL classification rules.

Rules are evaluated in a fixed order:

1. off-domain (unless the host is explicitly allowed)   → skip "off-domain"
2. skip rules: subdomain prefixes, then URL patterns    → skip "subdomain-pattern" / "skip-pattern"
3. signature already flagged by the trap detector       → trap
4. otherwise accept, HIGH tier if a priority rule matches
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Pattern, Tuple

from site_spider.config import REGEX_PREFIX, SiteConfig, SpiderConfig
from site_spider.crawler.models import Priority, Verdict
from site_spider.crawler.traps import TrapDetector, url_signature
from site_spider.errors import ConfigError
from site_spider.utils import extract_base_domain, is_same_domain, matches_subdomain_pattern

SKIP_OFF_DOMAIN = "off-domain"
SKIP_SUBDOMAIN = "subdomain-pattern"
SKIP_PATTERN = "skip-pattern"


class RuleKind(str, Enum):
    SUBSTRING = "substring"
    REGEX = "regex"


@dataclass(frozen=True, slots=True)
class PatternRule:
    """A literal substring or a compiled regex (written ``re:<expr>`` in config)."""

    kind: RuleKind
    pattern: str
    compiled: Optional[Pattern[str]] = field(default=None, compare=False, repr=False)

    @classmethod
    def parse(cls, raw: str) -> PatternRule:
        if raw.startswith(REGEX_PREFIX):
            expr = raw[len(REGEX_PREFIX):]
            try:
                return cls(RuleKind.REGEX, expr, re.compile(expr))
            except re.error as exc:
                raise ConfigError(f"invalid regex {raw!r}: {exc}") from exc
        if not raw:
            raise ConfigError("empty pattern")
        return cls(RuleKind.SUBSTRING, raw)

    def matches(self, url: str) -> bool:
        if self.compiled is not None:
            return self.compiled.search(url) is not None
        return self.pattern in url


def _parse_rules(raw: Iterable[str]) -> Tuple[PatternRule, ...]:
    return tuple(PatternRule.parse(r) for r in raw)


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Site rules; every sequence is evaluated in declaration order."""

    skip: Tuple[PatternRule, ...] = ()
    skip_subdomains: Tuple[str, ...] = ()
    priority: Tuple[PatternRule, ...] = ()
    allowed_domains: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: SpiderConfig, site: Optional[SiteConfig] = None) -> RuleSet:
        allowed = tuple(config.allowed_domains) + (tuple(site.allowed_domains) if site else ())
        return cls(
            skip=_parse_rules(config.skip_patterns),
            skip_subdomains=tuple(config.skip_subdomain_patterns),
            priority=_parse_rules(config.priority_patterns),
            allowed_domains=tuple(dict.fromkeys(allowed)),
        )

    def first_skip(self, url: str) -> Optional[PatternRule]:
        return next((r for r in self.skip if r.matches(url)), None)

    def is_priority(self, url: str) -> bool:
        return any(r.matches(url) for r in self.priority)


class UrlClassifier:
    """Classifies normalized URLs for one site against its rules and trap state."""

    def __init__(self, rules: RuleSet, base_domain: str, traps: TrapDetector) -> None:
        self.rules = rules
        self.base_domain = base_domain
        self.traps = traps

    def in_scope(self, url: str) -> bool:
        return is_same_domain(url, self.base_domain) or any(
            is_same_domain(url, d) for d in self.rules.allowed_domains
        )

    def classify(self, url: str) -> Verdict:
        if not self.in_scope(url):
            return Verdict.skip(SKIP_OFF_DOMAIN)
        if self._is_skipped_subdomain(url):
            return Verdict.skip(SKIP_SUBDOMAIN)
        if self.rules.first_skip(url) is not None:
            return Verdict.skip(SKIP_PATTERN)
        if self.traps.is_flagged(url):
            return Verdict.trap(url_signature(url))
        tier = Priority.HIGH if self.rules.is_priority(url) else Priority.NORMAL
        return Verdict.accept(tier)

    def _is_skipped_subdomain(self, url: str) -> bool:
        # the crawled host itself is never excluded by its own prefix
        if extract_base_domain(url) == self.base_domain:
            return False
        return matches_subdomain_pattern(url, self.rules.skip_subdomains)
