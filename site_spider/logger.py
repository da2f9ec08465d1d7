# === FILE: site_spider/logger.py ===
"""Logging for the **SiteSpider** crawler.

Everything logs below one project logger, ``SiteSpider``, which owns the
handlers; component loggers only propagate to it:

* ``SiteSpider.engine``   batch start/stop and per-site failures
* ``SiteSpider.fetcher``  retries and transport errors
* ``SiteSpider.scheduler.<domain>``  one child per crawled site, so a
  batch log can be filtered down to a single domain
* ``SiteSpider.report`` / ``SiteSpider.debug``  files written to disk

Importing the package sets up console output only.  The CLI calls
:func:`configure` again with ``--log-level``/``--log-file``/``--log-format``;
a log file, when given, rotates at 5 MB keeping three backups.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Optional, Union

PROJECT_LOGGER: Final[str] = "SiteSpider"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _build_handlers(log_format: str, log_file: Union[str, Path, None]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(
                filename=str(log_file),
                maxBytes=_MAX_LOG_BYTES,
                backupCount=_LOG_BACKUPS,
                encoding="utf-8",
            )
        )
    formatter = logging.Formatter(log_format)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the ``SiteSpider`` logger and return it.

    ``replace_handlers=False`` keeps the handlers installed by an earlier
    call and adds the new ones next to them.  Component loggers created
    before the call pick up the change, since they hold no handlers of
    their own.
    """
    project = logging.getLogger(PROJECT_LOGGER)
    project.setLevel(level)
    if replace_handlers:
        for handler in list(project.handlers):
            project.removeHandler(handler)
            handler.close()
    for handler in _build_handlers(log_format, log_file):
        project.addHandler(handler)
    project.propagate = False
    return project


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """``SiteSpider.<component>``, or the project logger itself."""
    project = logging.getLogger(PROJECT_LOGGER)
    return project.getChild(component) if component else project


def site_logger(domain: str) -> logging.Logger:
    """Logger of the scheduler crawling *domain*."""
    return get_logger(f"scheduler.{domain}")


logger: logging.Logger = configure()

__all__ = ["DEFAULT_FORMAT", "PROJECT_LOGGER", "configure", "get_logger", "logger", "site_logger"]
