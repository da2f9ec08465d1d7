# site_spider/crawler/gate.py
"""
Admission gates: counting permit pools used as ``async with gate: ...``.
"""
from __future__ import annotations

import asyncio
from types import TracebackType
from typing import Optional, Type

from site_spider.errors import ConfigError


class AdmissionGate:
    """Semaphore with in-use/peak instrumentation.

    The permit is released in ``__aexit__`` on every exit path, including
    exceptions and task cancellation.
    """

    def __init__(self, limit: int, name: str = "gate") -> None:
        if limit < 1:
            raise ConfigError(f"{name}: concurrency limit must be >= 1, got {limit}")
        self.limit = limit
        self.name = name
        self.in_use = 0
        self.peak = 0
        self._sem = asyncio.Semaphore(limit)

    async def __aenter__(self) -> AdmissionGate:
        await self._sem.acquire()
        self.in_use += 1
        self.peak = max(self.peak, self.in_use)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.in_use -= 1
        self._sem.release()

    @property
    def available(self) -> int:
        return self.limit - self.in_use

    def __repr__(self) -> str:
        return f"<AdmissionGate {self.name} {self.in_use}/{self.limit} peak={self.peak}>"
