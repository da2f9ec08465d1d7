# File: site_spider/report/__init__.py
"""site_spider.report: Сохранение результатов обхода (JSON по сайтам, сводные JSON и HTML)."""

from __future__ import annotations

from site_spider.report.html_report import render_html
from site_spider.report.json_report import JsonResultSink, render_json

__all__ = ["JsonResultSink", "render_json", "render_html"]
