# site_spider/crawler/__init__.py
"""Crawl core: frontier, classification, trap detection and the per-site scheduler."""
from site_spider.crawler.models import FetchResponse, Priority, SiteResult
from site_spider.crawler.scheduler import SiteScheduler

__all__ = ["FetchResponse", "Priority", "SiteResult", "SiteScheduler"]
