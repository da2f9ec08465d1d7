# site_spider/crawler/frontier.py
"""
Per-site crawl frontier: priority queue + seen-set + depth map.
"""
from __future__ import annotations

import heapq
import itertools
import threading
from typing import Dict, Iterator, List, Optional, Tuple

from site_spider.crawler.models import FrontierEntry, Outcome, SeenEntry
from site_spider.errors import ConfigError

_HeapItem = Tuple[int, int, FrontierEntry]


class Frontier:
    """Priority frontier ordered by tier, then insertion order (FIFO within a tier).

    A URL is marked seen the moment it is pushed, so two fetch tasks
    discovering the same link cannot both queue it.  All state is
    guarded by one lock.
    """

    def __init__(self, max_depth: int) -> None:
        if max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {max_depth}")
        self.max_depth = max_depth
        self._heap: List[_HeapItem] = []
        self._counter = itertools.count()
        self._seen: Dict[str, SeenEntry] = {}
        self._lock = threading.Lock()

    def push(self, entry: FrontierEntry) -> bool:
        """Queue *entry* unless its URL was seen or it is deeper than ``max_depth``."""
        with self._lock:
            if entry.url in self._seen or entry.depth > self.max_depth:
                return False
            self._seen[entry.url] = SeenEntry(entry.depth, Outcome.QUEUED)
            heapq.heappush(self._heap, (int(entry.priority), next(self._counter), entry))
            return True

    def pop(self) -> Optional[FrontierEntry]:
        """Highest-priority entry, or None when the queue is empty."""
        with self._lock:
            if not self._heap:
                return None
            return heapq.heappop(self._heap)[2]

    def requeue(self, entry: FrontierEntry) -> None:
        """Put a popped entry back; its URL stays in the seen-set."""
        with self._lock:
            seen = self._seen.get(entry.url)
            if seen is not None:
                seen.outcome = Outcome.QUEUED
            heapq.heappush(self._heap, (int(entry.priority), next(self._counter), entry))

    def pop_many(self, limit: int) -> List[FrontierEntry]:
        with self._lock:
            batch = []
            while self._heap and len(batch) < limit:
                batch.append(heapq.heappop(self._heap)[2])
            return batch

    def mark_seen(self, url: str, depth: int, outcome: Outcome) -> bool:
        """Record *url* without queueing it; False if it was already known."""
        with self._lock:
            if url in self._seen:
                return False
            self._seen[url] = SeenEntry(depth, outcome)
            return True

    def set_outcome(self, url: str, outcome: Outcome) -> None:
        with self._lock:
            seen = self._seen.get(url)
            if seen is not None:
                seen.outcome = outcome

    def outcome(self, url: str) -> Optional[Outcome]:
        with self._lock:
            seen = self._seen.get(url)
            return seen.outcome if seen else None

    def depth_of(self, url: str) -> Optional[int]:
        with self._lock:
            seen = self._seen.get(url)
            return seen.depth if seen else None

    def pending_urls(self) -> List[str]:
        """URLs still queued, in pop order."""
        with self._lock:
            return [item[2].url for item in sorted(self._heap)]

    @property
    def seen_count(self) -> int:
        with self._lock:
            return len(self._seen)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def __iter__(self) -> Iterator[str]:
        return iter(self.pending_urls())
