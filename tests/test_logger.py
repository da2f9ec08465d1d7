# File: tests/test_logger.py
import logging

import pytest
from site_spider.logger import PROJECT_LOGGER, configure, get_logger, site_logger


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    configure(level="INFO")


def test_component_loggers_hang_off_project_logger():
    assert get_logger().name == PROJECT_LOGGER
    assert get_logger("engine").name == "SiteSpider.engine"
    assert site_logger("example.com").name == "SiteSpider.scheduler.example.com"
    assert not site_logger("example.com").handlers


def test_configure_replaces_handlers_and_writes_file(tmp_path):
    log_file = tmp_path / "spider.log"
    project = configure(level="DEBUG", log_file=log_file, log_format="%(name)s %(message)s")
    assert len(project.handlers) == 2
    assert project.level == logging.DEBUG

    site_logger("example.com").info("loop #1")
    for handler in project.handlers:
        handler.flush()
    assert log_file.read_text(encoding="utf-8").strip() == "SiteSpider.scheduler.example.com loop #1"

    assert len(configure(level="INFO").handlers) == 1


def test_configure_can_append_handlers():
    configure(level="INFO")
    project = configure(level="INFO", replace_handlers=False)
    assert len(project.handlers) == 2
