# site_spider/crawler/link_extractor.py
"""
Link extraction for SiteSpider.
"""
from __future__ import annotations

from typing import List
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import Tag

from site_spider.errors import ParseError

_IGNORED_PREFIXES = ("mailto:", "javascript:", "tel:", "data:", "#")


def extract_links(body: str, base_url: str) -> List[str]:
    """
    Extract absolute HTTP(S) links from <a href> tags.

    Honors <base href>, drops fragments and non-navigational schemes,
    de-duplicates while keeping document order.  Domain filtering is left
    to the classifier.
    """
    try:
        soup = BeautifulSoup(body, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ParseError(base_url, str(exc)) from exc

    base = base_url
    base_tag = soup.find("base", href=True)
    if isinstance(base_tag, Tag):
        href_val = base_tag.get("href")
        if isinstance(href_val, str) and href_val.strip():
            base = urljoin(base_url, href_val.strip())

    links: List[str] = []
    seen = set()
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.lower().startswith(_IGNORED_PREFIXES):
            continue
        absolute, _ = urldefrag(urljoin(base, raw))
        if urlparse(absolute).scheme not in ("http", "https"):
            continue
        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)
    return links
