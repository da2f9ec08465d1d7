# File: tests/test_identity.py
import random

import pytest
from site_spider.crawler.identity import Identity, IdentityRotator
from site_spider.errors import ConfigError


def test_round_robin_from_random_offset():
    agents = ("A", "B", "C")
    rot = IdentityRotator(agents, 0, 0, rng=random.Random(7))
    seen = [rot.next().user_agent for _ in range(6)]
    start = agents.index(seen[0])
    expected = [agents[(start + i) % 3] for i in range(6)]
    assert seen == expected


def test_fixed_delay_when_bounds_equal():
    rot = IdentityRotator(("A",), 250, 250)
    assert all(rot.next().delay == pytest.approx(0.25) for _ in range(10))


def test_delay_within_bounds():
    rot = IdentityRotator(("A",), 100, 300, rng=random.Random(1))
    for _ in range(50):
        ident = rot.next()
        assert isinstance(ident, Identity)
        assert 0.1 <= ident.delay <= 0.3


def test_from_config(make_config):
    cfg = make_config(user_agents=("Only/1.0",), min_delay_ms=5, max_delay_ms=5)
    ident = IdentityRotator.from_config(cfg).next()
    assert ident == Identity("Only/1.0", 0.005)


@pytest.mark.parametrize(
    "agents,lo,hi",
    [((), 0, 0), (("A",), 10, 5), (("A",), -1, 5)],
)
def test_invalid(agents, lo, hi):
    with pytest.raises(ConfigError):
        IdentityRotator(agents, lo, hi)
