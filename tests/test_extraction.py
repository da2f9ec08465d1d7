# File: tests/test_extraction.py
"""Тесты извлечения ссылок и отладочных снимков страниц."""
import pytest
from site_spider.crawler.debug_capture import (
    DebugCapture,
    debug_filename,
    has_anti_bot_protection,
    requires_javascript,
)
from site_spider.crawler.link_extractor import extract_links


def test_extract_links_resolves_and_filters():
    html = """
    <html><body>
      <a href="/a">A</a>
      <a href="b/c?x=1#frag">B</a>
      <a href="https://other.com/x">X</a>
      <a href="mailto:me@example.com">mail</a>
      <a href="javascript:void(0)">js</a>
      <a href="tel:+100">tel</a>
      <a href="#top">top</a>
      <a href="ftp://example.com/file">ftp</a>
      <a href="/a">dup</a>
      <a>no href</a>
    </body></html>
    """
    assert extract_links(html, "https://example.com/dir/page") == [
        "https://example.com/a",
        "https://example.com/dir/b/c?x=1",
        "https://other.com/x",
    ]


def test_extract_links_honors_base_href():
    html = '<html><head><base href="https://cdn.example.com/root/"></head><body><a href="p">p</a></body></html>'
    assert extract_links(html, "https://example.com/") == ["https://cdn.example.com/root/p"]


def test_extract_links_empty_body():
    assert extract_links("", "https://example.com/") == []


@pytest.mark.parametrize(
    "html,expected",
    [
        ("<p>Please complete the CAPTCHA</p>", True),
        ("<p>Welcome</p>", False),
    ],
)
def test_anti_bot_heuristic(html, expected):
    assert has_anti_bot_protection(html) is expected


def test_javascript_heuristic():
    assert requires_javascript("<script>document.write('x')</script>")
    assert not requires_javascript("<a href='/'>home</a><a href='/a'>a</a><a href='/b'>b</a>")


def test_debug_filename_is_safe():
    name = debug_filename("https://example.com/a/b?c=1")
    assert name == "debug_example_com_a_b_c_1.html"
    assert len(debug_filename("https://example.com/" + "x" * 400)) <= len("debug_.html") + 150


def test_debug_capture_writes_file(tmp_path):
    DebugCapture(tmp_path).capture("example.com", "https://example.com/empty", "<html>blank</html>")
    saved = tmp_path / "example.com" / "debug_example_com_empty.html"
    assert saved.read_text(encoding="utf-8") == "<html>blank</html>"


def test_debug_capture_logs_io_errors(tmp_path):
    blocker = tmp_path / "debug"
    blocker.write_text("not a directory", encoding="utf-8")
    DebugCapture(blocker).capture("example.com", "https://example.com/", "<html></html>")
