# site_spider/report/json_report.py

"""
Генерация JSON-отчётов для проекта SiteSpider.

Один файл на сайт (``JsonResultSink``) и сводный файл пакета (``render_json``).
"""
import json
from pathlib import Path
from typing import Any, Dict, Union

from site_spider.aggregator import BatchReport
from site_spider.crawler.models import SiteResult
from site_spider.logger import get_logger
from site_spider.utils import domain_to_filename

logger = get_logger("report")


def _dump(data: Dict[str, Any], output: Path) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    return output


class JsonResultSink:
    """
    Сохраняет результат каждого сайта в ``<output_dir>/<domain>.json``.

    Пример:
    ```python
    sink = JsonResultSink('output/crawler')
    path = sink.write(result)   # output/crawler/example_com.json
    ```
    """

    def __init__(self, output_dir: Union[str, Path] = 'output/crawler') -> None:
        self.output_dir = Path(output_dir)

    def write(self, result: SiteResult) -> Path:
        path = _dump(result.to_dict(), domain_to_filename(result.domain, self.output_dir))
        logger.info("Saved %d URLs for %s to %s", len(result.found_urls), result.domain, path)
        return path


def render_json(report: BatchReport, output_path: Union[Path, str]) -> Path:
    """
    Сохраняет сводный отчёт report в формате JSON по указанному пути.

    :param report: объект BatchReport с результатами обхода
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла
    """
    return _dump(report.to_dict(), Path(output_path))
