# site_spider/errors.py
"""
Exception hierarchy for SiteSpider.

Only :class:`ConfigError` ever leaves the crawl core; fetch and parse
failures are absorbed into the per-site result.
"""
from __future__ import annotations

from typing import Optional

__all__ = ("SpiderError", "ConfigError", "FetchError", "ParseError")


class SpiderError(Exception):
    """Base class for all SiteSpider errors."""


class ConfigError(SpiderError, ValueError):
    """Invalid configuration bounds or rules, raised before any fetch happens."""


class FetchError(SpiderError):
    """Network failure or non-2xx response for a single URL."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status = status


class ParseError(SpiderError):
    """Link extraction failed for a fetched page."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
