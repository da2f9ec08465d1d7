# === FILE: site_spider/crawler/scheduler.py ===
"""
Per-site crawl loop.

A :class:`SiteScheduler` owns one frontier, one trap detector, one
admission gate and one :class:`SiteResult`.  It runs in rounds: each round
pops up to ``max_concurrent`` entries, fetches them concurrently behind
the gate and feeds discovered links back into the frontier.  The run
stops after ``max_loops`` rounds, when the frontier runs dry, on
:meth:`SiteScheduler.request_stop` or at the per-site deadline; fetches
already in flight always finish before the result is handed over.
"""
from __future__ import annotations

import asyncio
import time
from typing import Callable, List, Optional, Set, Union

from site_spider.config import SiteConfig, SpiderConfig
from site_spider.crawler.classifier import SKIP_OFF_DOMAIN, RuleSet, UrlClassifier
from site_spider.crawler.gate import AdmissionGate
from site_spider.crawler.identity import IdentityRotator
from site_spider.crawler.interfaces import CaptureHook, Fetcher
from site_spider.crawler.link_extractor import extract_links as default_extract_links
from site_spider.crawler.models import (
    Action,
    FetchResponse,
    FrontierEntry,
    Outcome,
    Priority,
    RedirectRecord,
    SchedulerState,
    SiteResult,
)
from site_spider.crawler.frontier import Frontier
from site_spider.crawler.traps import TrapDetector, url_signature
from site_spider.errors import ConfigError, FetchError, ParseError
from site_spider.logger import site_logger
from site_spider.utils import extract_base_domain, normalize_url

__all__ = ("SiteScheduler",)

SKIP_FETCH_ERROR = "fetch-error"
SKIP_PARSE_ERROR = "parse-error"
SKIP_MAX_DEPTH = "max-depth"
SKIP_TRAP = "trap"


class SiteScheduler:
    """Drives fetch → extract → classify → enqueue for a single domain."""

    def __init__(
        self,
        site: Union[SiteConfig, str],
        config: SpiderConfig,
        fetcher: Fetcher,
        *,
        extract_links: Callable[[str, str], List[str]] = default_extract_links,
        capture: Optional[CaptureHook] = None,
        identity: Optional[IdentityRotator] = None,
    ) -> None:
        self.config = config
        self._validate_config()
        self.site = SiteConfig(start_url=site) if isinstance(site, str) else site
        try:
            self.start_url = normalize_url(self.site.start_url)
            self.domain = extract_base_domain(self.start_url)
        except ValueError as exc:
            raise ConfigError(f"invalid start URL {self.site.start_url!r}: {exc}") from exc

        self.fetcher = fetcher
        self.extract_links = extract_links
        self.capture = capture
        self.identity = identity or IdentityRotator.from_config(config)
        self.traps = TrapDetector(config.trap_threshold)
        self.classifier = UrlClassifier(RuleSet.from_config(config, self.site), self.domain, self.traps)
        self.frontier = Frontier(config.max_depth)
        self.gate = AdmissionGate(config.max_concurrent, name=f"{self.domain}:fetch")
        self.result = SiteResult(domain=self.domain, start_url=self.start_url)
        self.state = SchedulerState.RUNNING
        self.logger = site_logger(self.domain)
        self._stop = asyncio.Event()
        self._redirect_sources: Set[str] = set()
        self._trap_samples: Set[str] = set()
        self._deadline: Optional[float] = None

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    def request_stop(self) -> None:
        """Ask the loop to drain: no new rounds start, in-flight fetches finish."""
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    async def run(self) -> SiteResult:
        if self.state is not SchedulerState.RUNNING:
            raise RuntimeError(f"scheduler for {self.domain} already {self.state.value}")
        started = time.monotonic()
        if self.config.site_timeout:
            self._deadline = started + self.config.site_timeout
        self.logger.info(
            "Starting crawl of %s (depth=%d, loops=%d, concurrent=%d)",
            self.start_url,
            self.config.max_depth,
            self.config.max_loops,
            self.config.max_concurrent,
        )
        self.frontier.push(FrontierEntry(self.start_url, depth=0, priority=Priority.SEED))
        try:
            while self.state is SchedulerState.RUNNING:
                reason = self._stop_reason()
                if reason:
                    self.logger.info("Draining: %s", reason)
                    self.state = SchedulerState.DRAINING
                    break
                batch = self.frontier.pop_many(self.config.max_concurrent)
                if not batch:
                    self.logger.info("Queue is empty, crawl complete")
                    self.state = SchedulerState.DRAINING
                    break
                self.result.stats.loops_run += 1
                await self._run_round(batch)
                self._log_round()
        finally:
            self._finalize(time.monotonic() - started)
        return self.result

    # ------------------------------------------------------------------ #
    # Loop internals                                                     #
    # ------------------------------------------------------------------ #

    def _stop_reason(self) -> Optional[str]:
        if self._stop.is_set():
            return "stop requested"
        if self.result.stats.loops_run >= self.config.max_loops:
            return f"max_loops ({self.config.max_loops}) reached"
        if self._past_deadline():
            return "site deadline passed"
        return None

    def _past_deadline(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    async def _run_round(self, batch: List[FrontierEntry]) -> None:
        tasks = [asyncio.create_task(self._process(entry)) for entry in batch]
        try:
            await asyncio.wait(tasks)
        except asyncio.CancelledError:
            # cancelled from outside: let in-flight fetches finish before propagating
            self.state = SchedulerState.DRAINING
            self._stop.set()
            await asyncio.wait(tasks)
            raise
        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                self.logger.error("Fetch task crashed: %r", task.exception())

    async def _process(self, entry: FrontierEntry) -> None:
        async with self.gate:
            identity = self.identity.next()
            await asyncio.sleep(identity.delay)
            if self._stop.is_set() or self._past_deadline():
                # not sent yet: back to the queue, reported in remaining_queue
                self.frontier.requeue(entry)
                return
            self.result.stats.processed += 1
            try:
                response = await self.fetcher.fetch(entry.url, identity.user_agent)
            except FetchError as exc:
                self._record_failure(entry, SKIP_FETCH_ERROR, exc)
                return
            except Exception as exc:
                self.logger.exception("Unexpected fetcher failure for %s", entry.url)
                self._record_failure(entry, SKIP_FETCH_ERROR, exc)
                return
        self._absorb(entry, response)

    def _absorb(self, entry: FrontierEntry, response: FetchResponse) -> None:
        """Fold one response into the result; no suspension points, so calls never interleave."""
        stats = self.result.stats
        stats.fetched += 1
        self.frontier.set_outcome(entry.url, Outcome.FETCHED)
        try:
            final_url = normalize_url(response.final_url)
        except ValueError:
            final_url = entry.url

        if final_url != entry.url:
            self._record_redirects(entry, response, final_url)
            if not self.classifier.in_scope(final_url):
                self._skip(final_url, SKIP_OFF_DOMAIN)
                return

        self.result.found_urls.add(final_url)
        if not response.is_html:
            return

        try:
            links = self.extract_links(response.body, response.final_url)
        except ParseError as exc:
            self._record_failure(entry, SKIP_PARSE_ERROR, exc)
            self._request_capture(final_url, response.body)
            return

        if not links and response.body.strip():
            self._request_capture(final_url, response.body)

        self.logger.debug("Found %d links on %s", len(links), final_url)
        for link in links:
            self._discover(link, entry)

    def _discover(self, link: str, parent: FrontierEntry) -> None:
        try:
            url = normalize_url(link)
        except ValueError:
            return
        if url in self.frontier:
            return
        verdict = self.classifier.classify(url)
        if verdict.action is Action.SKIP:
            self.frontier.mark_seen(url, parent.depth + 1, Outcome.SKIPPED)
            self._skip(url, verdict.reason)
            return
        if verdict.action is Action.TRAP:
            self._record_trap(url, verdict.signature, parent.depth + 1)
            return

        depth = parent.depth + 1
        if depth > self.config.max_depth:
            self._skip(url, SKIP_MAX_DEPTH)
            return
        if self.traps.observe(url):
            signature = url_signature(url)
            if signature not in self.result.patterns_detected:
                self.logger.info("Detected link trap pattern: %s", signature)
                self.result.patterns_detected.add(signature)
        if self.frontier.push(FrontierEntry(url, depth, verdict.priority, parent.url)):
            if self.result.skipped.get(url) == SKIP_MAX_DEPTH:
                del self.result.skipped[url]

    def _record_redirects(self, entry: FrontierEntry, response: FetchResponse, final_url: str) -> None:
        hops: List[str] = []
        for raw in response.redirect_chain:
            try:
                hops.append(normalize_url(raw))
            except ValueError:
                continue
        if not hops or hops[0] != entry.url:
            hops.insert(0, entry.url)
        hops.append(final_url)

        for src, dst in zip(hops, hops[1:]):
            if src == dst or src in self._redirect_sources:
                continue
            self._redirect_sources.add(src)
            self.result.redirects.append(RedirectRecord(src, dst))
        self.frontier.set_outcome(entry.url, Outcome.REDIRECTED)
        for hop in hops[1:-1]:
            self.frontier.mark_seen(hop, entry.depth, Outcome.REDIRECTED)
        self.frontier.mark_seen(final_url, entry.depth, Outcome.FETCHED)

    def _record_trap(self, url: str, signature: str, depth: int) -> None:
        """Only the first URL of a flagged signature is kept; later ones are just counted."""
        self.result.stats.trap_hits += 1
        if signature in self._trap_samples:
            return
        self._trap_samples.add(signature)
        self.frontier.mark_seen(url, depth, Outcome.SKIPPED)
        self._skip(url, SKIP_TRAP)
        self.result.patterns_detected.add(signature)

    def _record_failure(self, entry: FrontierEntry, reason: str, exc: Exception) -> None:
        self.logger.warning("Failed %s: %s", entry.url, exc)
        self.result.stats.errors += 1
        self.frontier.set_outcome(entry.url, Outcome.FAILED)
        self._skip(entry.url, reason)

    def _skip(self, url: str, reason: str) -> None:
        if url not in self.result.skipped:
            self.logger.debug("Skip %s (%s)", url, reason)
            self.result.skipped[url] = reason

    def _request_capture(self, url: str, body: str) -> None:
        self.result.stats.debug_captures += 1
        if self.capture is not None:
            self.capture.capture(self.domain, url, body)

    def _log_round(self) -> None:
        stats = self.result.stats
        self.logger.info(
            "loop #%d: processed=%d queue=%d found=%d skipped=%d patterns=%d redirects=%d errors=%d",
            stats.loops_run,
            stats.processed,
            len(self.frontier),
            len(self.result.found_urls),
            len(self.result.skipped),
            len(self.result.patterns_detected),
            len(self.result.redirects),
            stats.errors,
        )

    def _finalize(self, duration: float) -> None:
        self.state = SchedulerState.DRAINING
        stats = self.result.stats
        stats.skipped = len(self.result.skipped)
        stats.redirects = len(self.result.redirects)
        stats.patterns = len(self.result.patterns_detected)
        stats.duration = duration
        self.result.remaining_queue = self.frontier.pending_urls()
        self.state = SchedulerState.DONE
        self.logger.info(
            "Finished: %d URL(s) found, %d skipped, %d trap hit(s), %d queued, %d loop(s) in %.2fs",
            len(self.result.found_urls),
            stats.skipped,
            stats.trap_hits,
            len(self.result.remaining_queue),
            stats.loops_run,
            duration,
        )

    def _validate_config(self) -> None:
        cfg = self.config
        if cfg.max_concurrent < 1:
            raise ConfigError(f"max_concurrent must be >= 1, got {cfg.max_concurrent}")
        if cfg.max_loops < 1:
            raise ConfigError(f"max_loops must be >= 1, got {cfg.max_loops}")
        if cfg.max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {cfg.max_depth}")
        if cfg.min_delay_ms < 0 or cfg.min_delay_ms > cfg.max_delay_ms:
            raise ConfigError(
                f"invalid delay bounds: min_delay_ms={cfg.min_delay_ms} max_delay_ms={cfg.max_delay_ms}"
            )
        if cfg.trap_threshold < 1:
            raise ConfigError(f"trap_threshold must be >= 1, got {cfg.trap_threshold}")
