# === FILE: site_spider/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска краулера SiteSpider через командную строку.

Команды:
  crawl URL   Обойти один сайт и вывести/сохранить отчёты
  batch FILE  Обойти сайты из файла (один URL на строку, # начинает комментарий)
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH            Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --max-depth INT          Override max_depth
  --max-loops INT          Override max_loops
  --max-concurrent INT     Override max_concurrent
  --max-concurrent-sites   Override max_concurrent_sites
  --min-delay-ms INT       Override min_delay_ms
  --max-delay-ms INT       Override max_delay_ms
  --trap-threshold INT     Override trap_threshold
  --log-level LEVEL        Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH          Файл для логов (stdout, если не указан)
  --log-format FORMAT      Формат логирования

Опции crawl/batch:
  --json PATH         Сохранить сводный JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --timeout SEC       Мягкий дедлайн всего обхода (секунд)

Пример:
  site-spider --max-loops 10 crawl example.com --json report.json
"""
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import click

from site_spider import __version__
from site_spider.config import load_config, override_config
from site_spider.engine import start_crawl
from site_spider.errors import ConfigError
from site_spider.logger import configure
from site_spider.report.html_report import render_html
from site_spider.report.json_report import render_json
from site_spider.utils import read_url_list

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def output_options(func):
    """Общие опции вывода для команд crawl и batch."""
    func = click.option(
        '--timeout', 'timeout',
        type=click.FloatRange(min=0, min_open=True),
        default=None,
        help='Мягкий дедлайн всего обхода (секунд)'
    )(func)
    func = click.option(
        '--pretty', is_flag=True,
        help='Преформатировать JSON-вывод (отступ 2)'
    )(func)
    func = click.option(
        '--html', '-h', 'html_output',
        default=None,
        type=click.Path(dir_okay=False, path_type=Path),
        help='Сохранить HTML-отчёт в файл'
    )(func)
    func = click.option(
        '--json', '-j', 'json_output',
        default=None,
        type=click.Path(dir_okay=False, path_type=Path),
        help='Сохранить сводный JSON-отчёт в файл'
    )(func)
    return func


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteSpider, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option('--max-depth', type=int, default=None, help='Override max_depth')
@click.option('--max-loops', type=int, default=None, help='Override max_loops')
@click.option('--max-concurrent', type=int, default=None, help='Override max_concurrent')
@click.option('--max-concurrent-sites', type=int, default=None, help='Override max_concurrent_sites')
@click.option('--min-delay-ms', type=int, default=None, help='Override min_delay_ms')
@click.option('--max-delay-ms', type=int, default=None, help='Override max_delay_ms')
@click.option('--trap-threshold', type=int, default=None, help='Override trap_threshold')
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(name)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format, **overrides):
    """Группа команд SiteSpider CLI."""
    configure(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = override_config(load_config(config_path), overrides)
    except (ConfigError, OSError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


def _run_and_report(cfg, urls: List[str], json_output: Optional[Path], html_output: Optional[Path],
                    pretty: bool, timeout: Optional[float]) -> None:
    try:
        report = asyncio.run(start_crawl(cfg, urls, timeout=timeout))
    except ConfigError as e:
        print_error(f'Ошибка конфигурации: {e}')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    # Без файлов вывода печатаем отчёт в stdout
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, html_output)
            click.echo(f'HTML report: {saved_html}')
        except OSError as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@output_options
@click.pass_context
def crawl(ctx, url, json_output, html_output, pretty, timeout):
    """Обойти один сайт и сгенерировать отчёты."""
    _run_and_report(ctx.obj['config'], [url], json_output, html_output, pretty, timeout)


@cli.command('batch', context_settings=CONTEXT_SETTINGS)
@click.argument('url_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@output_options
@click.pass_context
def batch(ctx, url_file, json_output, html_output, pretty, timeout):
    """Обойти все сайты из файла со списком URL."""
    urls = read_url_list(url_file)
    if not urls:
        print_error(f'Файл {url_file} не содержит URL')
    _run_and_report(ctx.obj['config'], urls, json_output, html_output, pretty, timeout)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
