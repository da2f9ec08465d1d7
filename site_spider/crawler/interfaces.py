# site_spider/crawler/interfaces.py
"""
Collaborator protocols consumed by the crawl core.

Concrete implementations live in :mod:`site_spider.crawler.fetcher`,
:mod:`site_spider.crawler.link_extractor`, :mod:`site_spider.crawler.debug_capture`
and :mod:`site_spider.report.json_report`; tests plug in in-memory fakes.
"""
from __future__ import annotations

from typing import List, Protocol

from site_spider.crawler.models import FetchResponse, SiteResult


class Fetcher(Protocol):
    async def fetch(self, url: str, user_agent: str) -> FetchResponse:
        """Fetch *url*, following redirects; raise FetchError on non-2xx or network failure."""
        ...


class LinkExtractor(Protocol):
    def __call__(self, body: str, base_url: str) -> List[str]:
        ...


class CaptureHook(Protocol):
    def capture(self, domain: str, url: str, body: str) -> None:
        ...


class ResultSink(Protocol):
    def write(self, result: SiteResult) -> object:
        ...
