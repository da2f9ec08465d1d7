# site_spider/crawler/identity.py
"""
User-agent rotation and randomized politeness delays.
"""
from __future__ import annotations

import random
from typing import NamedTuple, Optional, Sequence

from site_spider.config import SpiderConfig
from site_spider.errors import ConfigError


class Identity(NamedTuple):
    user_agent: str
    delay: float  # seconds


class IdentityRotator:
    """Round-robin user agents (random starting offset) with uniform delays."""

    def __init__(
        self,
        user_agents: Sequence[str],
        min_delay_ms: int,
        max_delay_ms: int,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not user_agents:
            raise ConfigError("at least one user agent is required")
        if min_delay_ms < 0 or min_delay_ms > max_delay_ms:
            raise ConfigError(f"invalid delay bounds: {min_delay_ms}..{max_delay_ms} ms")
        self._agents = tuple(user_agents)
        self._min = min_delay_ms
        self._max = max_delay_ms
        self._rng = rng or random.Random()
        self._index = self._rng.randrange(len(self._agents))

    @classmethod
    def from_config(cls, config: SpiderConfig, rng: Optional[random.Random] = None) -> IdentityRotator:
        return cls(config.user_agents, config.min_delay_ms, config.max_delay_ms, rng=rng)

    def next(self) -> Identity:
        agent = self._agents[self._index % len(self._agents)]
        self._index += 1
        delay_ms = self._rng.uniform(self._min, self._max)
        return Identity(agent, delay_ms / 1000.0)
