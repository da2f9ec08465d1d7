# site_spider/crawler/fetcher.py
"""
Fetcher module: HTTP GET with redirects, retry/backoff and timeout on top of aiohttp.
"""
from __future__ import annotations

import asyncio
import random
from typing import Dict, Optional, Sequence
from urllib.parse import urlsplit

from aiohttp import ClientError, ClientResponseError, ClientSession, ClientTimeout

from site_spider.config import SpiderConfig
from site_spider.crawler.models import FetchResponse
from site_spider.errors import FetchError
from site_spider.logger import get_logger

logger = get_logger("fetcher")

_DEFAULT_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
}


class AiohttpFetcher:
    """Owns a ClientSession; use as ``async with AiohttpFetcher(cfg) as fetcher``."""

    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(self, config: SpiderConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> AiohttpFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.request_timeout),
                headers=_DEFAULT_HEADERS,
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str, user_agent: str) -> FetchResponse:
        """
        Fetch *url* following redirects.

        Retries 5xx/429 and client errors with exponential backoff; raises
        FetchError once retries are exhausted, on other non-2xx statuses and
        on timeout (no retry).
        """
        if not self.session:
            raise RuntimeError("Session not initialized")
        attempts = 0
        while True:
            try:
                return await self._get(url, user_agent)
            except asyncio.TimeoutError as exc:
                raise FetchError(url, "timeout") from exc
            except ClientError as exc:
                attempts += 1
                status = exc.status if isinstance(exc, ClientResponseError) else None
                if attempts > self.config.retry_times:
                    raise FetchError(url, str(exc) or type(exc).__name__, status=status) from exc
                backoff = min(30.0, self.config.retry_backoff * 2 ** (attempts - 1))
                backoff += random.random() * self.config.retry_backoff
                logger.debug(
                    "Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff
                )
                await asyncio.sleep(backoff)

    async def _get(self, url: str, user_agent: str) -> FetchResponse:
        assert self.session is not None
        parsed = urlsplit(url)
        headers = {
            "User-Agent": user_agent,
            "Referer": f"{parsed.scheme}://{parsed.netloc}/",
        }
        async with self.session.get(
            url,
            headers=headers,
            allow_redirects=self.config.max_redirects > 0,
            max_redirects=max(1, self.config.max_redirects),
        ) as resp:
            if resp.status in self._RETRY_STATUS:
                raise ClientResponseError(
                    resp.request_info,
                    resp.history,
                    status=resp.status,
                    message=f"retryable status {resp.status}",
                )
            if not 200 <= resp.status < 300:
                raise FetchError(url, f"HTTP {resp.status}", status=resp.status)
            ctype = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
            body = ""
            if "html" in ctype:
                body = await resp.text(errors="replace")
            return FetchResponse(
                url=url,
                status=resp.status,
                final_url=str(resp.url),
                body=body,
                content_type=ctype,
                redirect_chain=tuple(str(h.url) for h in resp.history),
            )
