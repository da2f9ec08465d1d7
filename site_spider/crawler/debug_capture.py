# site_spider/crawler/debug_capture.py
"""
Debug HTML capture for pages that yielded no links.

The scheduler only signals; this module writes the page to
``<debug_dir>/<domain>/debug_<url>.html`` and logs a quick diagnosis.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Union

from site_spider.logger import get_logger

logger = get_logger("debug")

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")
_ANTI_BOT_MARKERS = ("captcha", "robot", "automated", "cf-challenge", "are you human")


def has_anti_bot_protection(html: str) -> bool:
    lowered = html.lower()
    return any(marker in lowered for marker in _ANTI_BOT_MARKERS)


def requires_javascript(html: str) -> bool:
    return (
        "document.write" in html
        or "window.location" in html
        or html.count("function(") > 10
        or ("</noscript>" in html and html.count("<a") < 3)
    )


def html_stats(html: str) -> str:
    return (
        f"{len(html)} chars, {html.count('<div')} divs, "
        f"{html.count('<a ')} links, {html.count('<script')} scripts"
    )


def debug_filename(url: str) -> str:
    safe = _UNSAFE.sub("_", url.split("://", 1)[-1]).strip("_")
    return f"debug_{safe[:150] or 'root'}.html"


class DebugCapture:
    """File-writing capture hook; I/O errors are logged, never raised."""

    def __init__(self, debug_dir: Union[str, Path] = "debug") -> None:
        self.debug_dir = Path(debug_dir)

    def capture(self, domain: str, url: str, body: str) -> None:
        target_dir = self.debug_dir / domain.replace(":", "_")
        path = target_dir / debug_filename(url)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(body, encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not save debug HTML for %s: %s", url, exc)
            return
        logger.debug("Saved debug HTML to %s (%s)", path, html_stats(body))
        if has_anti_bot_protection(body):
            logger.warning("Possible anti-bot protection detected on page: %s", url)
        if requires_javascript(body):
            logger.warning("Page may require JavaScript to display content: %s", url)
