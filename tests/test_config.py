# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from site_spider.config import (
    DEFAULT_PRIORITY_PATTERNS,
    SiteConfig,
    SpiderConfig,
    build_config,
    coerce_url,
    load_config,
    override_config,
)
from site_spider.errors import ConfigError


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults():
    cfg = SpiderConfig()
    assert cfg.max_depth == 10
    assert cfg.max_loops == 50
    assert cfg.max_concurrent == 30
    assert cfg.max_concurrent_sites == 5
    assert (cfg.min_delay_ms, cfg.max_delay_ms) == (100, 2000)
    assert cfg.trap_threshold == 50
    assert cfg.priority_patterns == DEFAULT_PRIORITY_PATTERNS
    assert len(cfg.user_agents) > 1


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("max_depth: 3\nmax_loops: 7", ".yaml", None),
        (json.dumps({"max_depth": 3, "max_loops": 7}), ".json", None),
        ("max_depth: -1", ".yaml", ConfigError),
        ("unknown_option: 1", ".yaml", ConfigError),
        ("- just\n- a list", ".yaml", ConfigError),
        ("max_depth: [unclosed", ".yaml", ConfigError),
        ("{not json", ".json", ConfigError),
        ("max_depth = 3", ".toml", ConfigError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, SpiderConfig)
        assert cfg.max_depth == 3
        assert cfg.max_loops == 7


def test_load_config_default_missing_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_config(None) == SpiderConfig()


def test_load_config_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("max_loops: 3\n", encoding="utf-8")
    assert load_config(None).max_loops == 3


def test_load_config_explicit_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_min_delay_above_max_rejected():
    with pytest.raises(ConfigError):
        build_config(min_delay_ms=500, max_delay_ms=100)


def test_zero_concurrency_rejected():
    with pytest.raises(ConfigError):
        build_config(max_concurrent=0)


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        build_config(max_concurrent_sites=0)


def test_invalid_regex_rejected():
    with pytest.raises(ConfigError):
        build_config(skip_patterns=("re:(unclosed",))


def test_override_ignores_none():
    base = SpiderConfig()
    cfg = override_config(base, {"max_depth": 2, "max_loops": None})
    assert cfg.max_depth == 2
    assert cfg.max_loops == base.max_loops
    assert override_config(base, {"max_depth": None}) is base


def test_config_is_frozen():
    cfg = SpiderConfig()
    with pytest.raises(Exception):
        cfg.max_depth = 1


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("example.com", "https://example.com"),
        ("  http://example.com/a ", "http://example.com/a"),
        ("https://x.org", "https://x.org"),
    ],
)
def test_coerce_url(raw, expected):
    assert coerce_url(raw) == expected


def test_site_config_normalizes_inputs():
    site = SiteConfig(start_url="example.com", allowed_domains=["CDN.Example.NET", " "])
    assert site.start_url == "https://example.com"
    assert site.allowed_domains == ("cdn.example.net",)
