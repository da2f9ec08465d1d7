# File: tests/test_utils.py
"""Тесты нормализации URL и доменных утилит."""
from pathlib import Path

import pytest
from site_spider.utils import (
    domain_to_filename,
    extract_base_domain,
    is_same_domain,
    matches_subdomain_pattern,
    normalize_url,
    read_url_list,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("HTTP://Example.COM", "http://example.com/"),
        ("https://example.com:443/a/", "https://example.com/a"),
        ("http://example.com:8080/", "http://example.com:8080/"),
        ("https://example.com/a/./b/../c", "https://example.com/a/c"),
        ("https://example.com/page#section", "https://example.com/page"),
        ("https://example.com/s?b=2&a=1", "https://example.com/s?a=1&b=2"),
        ("https://example.com/s?q=", "https://example.com/s?q="),
        ("https://example.com/a%20b", "https://example.com/a%20b"),
        ("https://example.com/a b", "https://example.com/a%20b"),
        ("https://example.com/a%2Fb", "https://example.com/a%2Fb"),
        ("https://example.com/a%2fb", "https://example.com/a%2Fb"),
        ("https://example.com/%7Euser/%41", "https://example.com/~user/A"),
        ("https://example.com/100%", "https://example.com/100%25"),
        ("https://example.com/caf%c3%a9", "https://example.com/caf%C3%A9"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected


def test_normalize_url_is_idempotent():
    once = normalize_url("https://Example.com/x/../y/?z=1&a=2#frag")
    assert normalize_url(once) == once


@pytest.mark.parametrize("raw", ["mailto:someone@example.com", "ftp://example.com/f", "/relative"])
def test_normalize_url_rejects(raw):
    with pytest.raises(ValueError):
        normalize_url(raw)


def test_extract_base_domain_strips_www():
    assert extract_base_domain("https://www.example.com/a") == "example.com"
    assert extract_base_domain("https://shop.example.com") == "shop.example.com"


@pytest.mark.parametrize(
    "url,same",
    [
        ("https://example.com/x", True),
        ("https://www.example.com/x", True),
        ("https://blog.example.com/x", True),
        ("https://notexample.com/x", False),
        ("https://example.org/x", False),
        ("not a url", False),
    ],
)
def test_is_same_domain(url, same):
    assert is_same_domain(url, "example.com") is same


def test_matches_subdomain_pattern():
    assert matches_subdomain_pattern("https://docs.example.com/a", ["docs.", "cdn."])
    assert not matches_subdomain_pattern("https://www.example.com/a", ["docs."])


def test_domain_to_filename():
    assert domain_to_filename("example.com", "out") == Path("out") / "example_com.json"
    assert domain_to_filename("localhost:8080", "out").name == "localhost_8080.json"


def test_read_url_list(tmp_path):
    f = tmp_path / "urls.txt"
    f.write_text("# comment\n\nexample.com\n  https://b.org/start  \n", encoding="utf-8")
    assert read_url_list(f) == ["https://example.com", "https://b.org/start"]


def test_read_url_list_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_url_list(tmp_path / "missing.txt")


def test_encoded_slash_not_merged_with_path_separator():
    assert normalize_url("https://example.com/a%2Fb") != normalize_url("https://example.com/a/b")
    assert normalize_url("https://example.com/x/%2E%2E/y") == normalize_url("https://example.com/x/../y")
