# File: site_spider/aggregator.py
"""site_spider.aggregator: Модуль агрегатора результатов пакетного обхода."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, TypedDict

from site_spider.crawler.models import SiteResult


class BatchTotals(TypedDict):
    """Суммарные счётчики по всем сайтам пакета."""

    sites: int
    failed_sites: int
    found_urls: int
    skipped: int
    errors: int
    redirects: int
    patterns: int
    loops_run: int


@dataclass(slots=True)
class BatchReport:
    """Результаты пакетного обхода; ``sites`` хранится в порядке завершения."""

    sites: List[SiteResult] = field(default_factory=list)

    def add(self, result: SiteResult) -> None:
        self.sites.append(result)

    def by_domain(self) -> List[SiteResult]:
        """Результаты, отсортированные по домену (порядок входа не сохраняется)."""
        return sorted(self.sites, key=lambda r: r.domain)

    def get(self, domain: str) -> SiteResult:
        for result in self.sites:
            if result.domain == domain:
                return result
        raise KeyError(domain)

    def totals(self) -> BatchTotals:
        return {
            "sites": len(self.sites),
            "failed_sites": sum(1 for r in self.sites if r.error),
            "found_urls": sum(len(r.found_urls) for r in self.sites),
            "skipped": sum(len(r.skipped) for r in self.sites),
            "errors": sum(r.stats.errors for r in self.sites),
            "redirects": sum(len(r.redirects) for r in self.sites),
            "patterns": sum(len(r.patterns_detected) for r in self.sites),
            "loops_run": sum(r.stats.loops_run for r in self.sites),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totals": dict(self.totals()),
            "sites": [r.to_dict() for r in self.sites],
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление BatchReport."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
