# File: tests/test_frontier.py
import pytest
from site_spider.crawler.frontier import Frontier
from site_spider.crawler.models import FrontierEntry, Outcome, Priority
from site_spider.errors import ConfigError


def test_push_then_pop_fifo_within_tier():
    f = Frontier(max_depth=3)
    for i in range(3):
        assert f.push(FrontierEntry(f"https://ex.com/{i}", depth=1))
    assert [f.pop().url for _ in range(3)] == [
        "https://ex.com/0",
        "https://ex.com/1",
        "https://ex.com/2",
    ]
    assert f.pop() is None


def test_priority_pops_before_earlier_normal():
    f = Frontier(max_depth=3)
    f.push(FrontierEntry("https://ex.com/a", depth=1))
    f.push(FrontierEntry("https://ex.com/b", depth=1))
    f.push(FrontierEntry("https://ex.com/contact", depth=1, priority=Priority.HIGH))
    f.push(FrontierEntry("https://ex.com/", depth=0, priority=Priority.SEED))
    order = [e.url for e in f.pop_many(10)]
    assert order == [
        "https://ex.com/",
        "https://ex.com/contact",
        "https://ex.com/a",
        "https://ex.com/b",
    ]


def test_duplicate_push_rejected_even_after_pop():
    f = Frontier(max_depth=3)
    assert f.push(FrontierEntry("https://ex.com/a"))
    assert not f.push(FrontierEntry("https://ex.com/a", priority=Priority.HIGH))
    f.pop()
    assert not f.push(FrontierEntry("https://ex.com/a"))
    assert len(f) == 0
    assert f.seen_count == 1


def test_depth_limit():
    f = Frontier(max_depth=1)
    assert not f.push(FrontierEntry("https://ex.com/deep", depth=2))
    assert "https://ex.com/deep" not in f
    assert f.push(FrontierEntry("https://ex.com/ok", depth=1))
    assert f.depth_of("https://ex.com/ok") == 1


def test_mark_seen_blocks_push_and_keeps_outcome():
    f = Frontier(max_depth=3)
    assert f.mark_seen("https://ex.com/x", 1, Outcome.SKIPPED)
    assert not f.mark_seen("https://ex.com/x", 1, Outcome.FETCHED)
    assert not f.push(FrontierEntry("https://ex.com/x"))
    assert f.outcome("https://ex.com/x") is Outcome.SKIPPED


def test_set_outcome():
    f = Frontier(max_depth=3)
    f.push(FrontierEntry("https://ex.com/a"))
    assert f.outcome("https://ex.com/a") is Outcome.QUEUED
    f.set_outcome("https://ex.com/a", Outcome.FETCHED)
    assert f.outcome("https://ex.com/a") is Outcome.FETCHED
    f.set_outcome("https://ex.com/unknown", Outcome.FETCHED)
    assert f.outcome("https://ex.com/unknown") is None


def test_pending_urls_in_pop_order():
    f = Frontier(max_depth=3)
    f.push(FrontierEntry("https://ex.com/a"))
    f.push(FrontierEntry("https://ex.com/b", priority=Priority.HIGH))
    assert f.pending_urls() == ["https://ex.com/b", "https://ex.com/a"]
    assert list(f) == f.pending_urls()


def test_negative_depth_rejected():
    with pytest.raises(ConfigError):
        Frontier(max_depth=-1)


def test_requeue_returns_popped_entry_without_reopening_seen():
    f = Frontier(max_depth=3)
    f.push(FrontierEntry("https://ex.com/a", depth=1))
    entry = f.pop()
    f.set_outcome(entry.url, Outcome.FETCHED)

    f.requeue(entry)
    assert f.pending_urls() == ["https://ex.com/a"]
    assert f.outcome("https://ex.com/a") is Outcome.QUEUED
    assert not f.push(FrontierEntry("https://ex.com/a", depth=1))
    assert f.pop() == entry
