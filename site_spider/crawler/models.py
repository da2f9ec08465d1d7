# site_spider/crawler/models.py
"""
Data models for the SiteSpider crawl core.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Set, Tuple


class Priority(IntEnum):
    """Frontier tiers; a lower value is popped first."""

    SEED = 0
    HIGH = 1
    NORMAL = 2


class Outcome(str, Enum):
    """What happened to a URL recorded in the seen-set."""

    QUEUED = "queued"
    FETCHED = "fetched"
    FAILED = "failed"
    REDIRECTED = "redirected"
    SKIPPED = "skipped"


class Action(str, Enum):
    ACCEPT = "accept"
    SKIP = "skip"
    TRAP = "trap"


class SchedulerState(str, Enum):
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class Verdict:
    """Classification of a discovered URL."""

    action: Action
    priority: Priority = Priority.NORMAL
    reason: str = ""
    signature: str = ""

    @classmethod
    def accept(cls, priority: Priority = Priority.NORMAL) -> Verdict:
        return cls(Action.ACCEPT, priority=priority)

    @classmethod
    def skip(cls, reason: str) -> Verdict:
        return cls(Action.SKIP, reason=reason)

    @classmethod
    def trap(cls, signature: str) -> Verdict:
        return cls(Action.TRAP, reason="trap", signature=signature)


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """A URL waiting in the frontier."""

    url: str
    depth: int = 0
    priority: Priority = Priority.NORMAL
    discovered_from: Optional[str] = None


@dataclass(slots=True)
class SeenEntry:
    depth: int
    outcome: Outcome


@dataclass(frozen=True, slots=True)
class FetchResponse:
    """Result of a successful fetch, redirects already followed.

    ``redirect_chain`` lists every URL requested before ``final_url``,
    starting with the original one; it is empty when no redirect happened.
    """

    url: str
    status: int
    final_url: str
    body: str = ""
    content_type: str = "text/html"
    redirect_chain: Tuple[str, ...] = ()

    @property
    def is_html(self) -> bool:
        return "html" in self.content_type


@dataclass(frozen=True, slots=True)
class RedirectRecord:
    from_url: str
    to_url: str


@dataclass(slots=True)
class CrawlStats:
    """Counters collected by a site scheduler."""

    fetched: int = 0
    skipped: int = 0
    errors: int = 0
    loops_run: int = 0
    processed: int = 0
    redirects: int = 0
    patterns: int = 0
    debug_captures: int = 0
    trap_hits: int = 0
    duration: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "fetched": self.fetched,
            "skipped": self.skipped,
            "errors": self.errors,
            "loops_run": self.loops_run,
            "processed": self.processed,
            "redirects": self.redirects,
            "patterns": self.patterns,
            "debug_captures": self.debug_captures,
            "trap_hits": self.trap_hits,
            "duration": round(self.duration, 3),
        }


@dataclass(slots=True)
class SiteResult:
    """Everything one site crawl discovered.

    Mutated only by the owning :class:`~site_spider.crawler.scheduler.SiteScheduler`
    until it reaches ``DONE``; read-only afterwards.
    """

    domain: str
    start_url: str
    found_urls: Set[str] = field(default_factory=set)
    skipped: Dict[str, str] = field(default_factory=dict)
    patterns_detected: Set[str] = field(default_factory=set)
    redirects: List[RedirectRecord] = field(default_factory=list)
    remaining_queue: List[str] = field(default_factory=list)
    stats: CrawlStats = field(default_factory=CrawlStats)
    error: Optional[str] = None

    def skipped_by_reason(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for url, reason in self.skipped.items():
            grouped.setdefault(reason, []).append(url)
        return {reason: sorted(urls) for reason, urls in sorted(grouped.items())}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "start_url": self.start_url,
            "found_urls": sorted(self.found_urls),
            "skipped": self.skipped_by_reason(),
            "patterns_detected": sorted(self.patterns_detected),
            "redirects": [{"from": r.from_url, "to": r.to_url} for r in self.redirects],
            "remaining_queue": list(self.remaining_queue),
            "stats": self.stats.as_dict(),
            "error": self.error,
        }
