# File: site_spider/engine.py
"""site_spider.engine: Orchestration layer для пакетного обхода сайтов и агрегации результатов."""

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional, Sequence, Union

from site_spider.aggregator import BatchReport
from site_spider.config import SiteConfig, SpiderConfig
from site_spider.crawler.debug_capture import DebugCapture
from site_spider.crawler.fetcher import AiohttpFetcher
from site_spider.crawler.gate import AdmissionGate
from site_spider.crawler.interfaces import CaptureHook, Fetcher, ResultSink
from site_spider.crawler.models import SiteResult
from site_spider.crawler.scheduler import SiteScheduler
from site_spider.logger import get_logger
from site_spider.report.json_report import JsonResultSink

__all__ = ["BatchOrchestrator", "start_crawl"]

logger = get_logger("engine")

SiteLike = Union[SiteConfig, str]


class BatchOrchestrator:
    """Запускает независимый SiteScheduler на каждый сайт, не более max_concurrent_sites одновременно."""

    def __init__(
        self,
        config: SpiderConfig,
        fetcher: Fetcher,
        *,
        sink: Optional[ResultSink] = None,
        capture: Optional[CaptureHook] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.sink = sink
        self.capture = capture
        self.gate = AdmissionGate(config.max_concurrent_sites, name="sites")
        self.schedulers: List[SiteScheduler] = []
        self._stopped = False

    def build_schedulers(self, sites: Iterable[SiteLike]) -> List[SiteScheduler]:
        """Создаёт планировщики заранее: ConfigError всплывает до первого запроса."""
        return [
            SiteScheduler(site, self.config, self.fetcher, capture=self.capture)
            for site in sites
        ]

    def stop(self) -> None:
        """Просит все планировщики завершиться; запросы в полёте дорабатывают."""
        self._stopped = True
        logger.info("Stop requested for %d site(s)", len(self.schedulers))
        for scheduler in self.schedulers:
            scheduler.request_stop()

    async def run(self, sites: Sequence[SiteLike], timeout: Optional[float] = None) -> BatchReport:
        """Обходит все сайты; результаты в порядке завершения."""
        self.schedulers = self.build_schedulers(sites)
        report = BatchReport()
        if not self.schedulers:
            return report

        logger.info(
            "Starting batch: %d site(s), up to %d at a time",
            len(self.schedulers),
            self.config.max_concurrent_sites,
        )
        deadline_handle = None
        if timeout is not None:
            deadline_handle = asyncio.get_running_loop().call_later(timeout, self.stop)
        tasks = [asyncio.create_task(self._run_site(s)) for s in self.schedulers]
        try:
            for next_done in asyncio.as_completed(tasks):
                result = await next_done
                report.add(result)
                self._write(result)
        except asyncio.CancelledError:
            # отмена снаружи: все сайты дренируются и завершаются до проброса
            self.stop()
            drained = await asyncio.gather(*tasks, return_exceptions=True)
            for result in drained:
                if isinstance(result, SiteResult) and all(result is not r for r in report.sites):
                    report.add(result)
                    self._write(result)
            raise
        finally:
            if deadline_handle is not None:
                deadline_handle.cancel()

        logger.info(
            "Batch finished: %d site(s), %d URL(s) found",
            len(report.sites),
            report.totals()["found_urls"],
        )
        return report

    async def _run_site(self, scheduler: SiteScheduler) -> SiteResult:
        async with self.gate:
            if self._stopped:
                scheduler.request_stop()
            try:
                return await scheduler.run()
            except Exception as exc:
                logger.exception("Crawl of %s failed", scheduler.domain)
                scheduler.result.error = f"{type(exc).__name__}: {exc}"
                return scheduler.result

    def _write(self, result: SiteResult) -> None:
        if self.sink is None:
            return
        try:
            self.sink.write(result)
        except OSError as exc:
            logger.error("Could not save results for %s: %s", result.domain, exc)


async def start_crawl(
    config: SpiderConfig,
    sites: Sequence[SiteLike],
    *,
    sink: Optional[ResultSink] = None,
    capture: Optional[CaptureHook] = None,
    timeout: Optional[float] = None,
) -> BatchReport:
    """
    Точка входа для CLI: создаёт aiohttp-фетчер, файловые sink/capture по конфигу
    и запускает пакетный обход.
    """
    if sink is None:
        sink = JsonResultSink(config.output_dir)
    if capture is None and config.capture_debug_html:
        capture = DebugCapture(config.debug_dir)
    async with AiohttpFetcher(config) as fetcher:
        orchestrator = BatchOrchestrator(config, fetcher, sink=sink, capture=capture)
        return await orchestrator.run(sites, timeout=timeout)
