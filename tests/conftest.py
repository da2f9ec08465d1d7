# File: tests/conftest.py
import asyncio
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from site_spider.config import SpiderConfig, build_config
from site_spider.crawler.models import FetchResponse, SiteResult
from site_spider.errors import FetchError


def page(*hrefs: str) -> str:
    """Minimal HTML page linking to *hrefs*."""
    links = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return f"<html><body>{links}</body></html>"


class FakeFetcher:
    """
    In-memory site: maps URL → HTML body.

    Also supports redirects (url → chain of hops), failing URLs, a dynamic
    page factory and an artificial latency; records concurrency and fetch order.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        *,
        redirects: Optional[Dict[str, Tuple[str, ...]]] = None,
        failing: Tuple[str, ...] = (),
        factory: Optional[Callable[[str], Optional[str]]] = None,
        latency: float = 0.0,
        content_types: Optional[Dict[str, str]] = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.redirects = dict(redirects or {})
        self.failing = set(failing)
        self.factory = factory
        self.latency = latency
        self.content_types = dict(content_types or {})
        self.fetched: List[str] = []
        self.user_agents: List[str] = []
        self.in_flight = 0
        self.peak = 0

    async def fetch(self, url: str, user_agent: str) -> FetchResponse:
        self.fetched.append(url)
        self.user_agents.append(user_agent)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.latency)
        finally:
            self.in_flight -= 1

        if url in self.failing:
            raise FetchError(url, "HTTP 500", status=500)

        chain: Tuple[str, ...] = ()
        final = url
        if url in self.redirects:
            hops = self.redirects[url]
            chain = (url,) + hops[:-1]
            final = hops[-1]

        body = self.pages.get(final)
        if body is None and self.factory is not None:
            body = self.factory(final)
        if body is None:
            raise FetchError(url, "HTTP 404", status=404)
        return FetchResponse(
            url=url,
            status=200,
            final_url=final,
            body=body,
            content_type=self.content_types.get(final, "text/html"),
            redirect_chain=chain,
        )


class RecordingSink:
    def __init__(self) -> None:
        self.written: List[SiteResult] = []

    def write(self, result: SiteResult) -> None:
        self.written.append(result)


class RecordingCapture:
    def __init__(self) -> None:
        self.captured: List[Tuple[str, str, str]] = []

    def capture(self, domain: str, url: str, body: str) -> None:
        self.captured.append((domain, url, body))


@pytest.fixture()
def make_config() -> Callable[..., SpiderConfig]:
    """
    Factory for fast configs: zero delays, no default skip/priority rules.
    """

    def _make(**overrides) -> SpiderConfig:
        values = dict(
            max_depth=5,
            max_loops=50,
            max_concurrent=4,
            max_concurrent_sites=2,
            min_delay_ms=0,
            max_delay_ms=0,
            trap_threshold=50,
            skip_patterns=(),
            skip_subdomain_patterns=(),
            priority_patterns=(),
            retry_times=0,
            capture_debug_html=False,
        )
        values.update(overrides)
        return build_config(**values)

    return _make


@pytest.fixture()
def fast_config(make_config) -> SpiderConfig:
    return make_config()


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def capture() -> RecordingCapture:
    return RecordingCapture()
