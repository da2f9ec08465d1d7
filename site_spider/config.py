# === FILE: site_spider/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера SiteSpider.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import json
import os
import errno
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from site_spider.errors import ConfigError

REGEX_PREFIX = "re:"

DEFAULT_SKIP_PATTERNS: Tuple[str, ...] = (
    "/blogs/",
    "/blog/",
    "/docs/",
    "/library/",
    "/images/",
    "/feed/",
    "/wp-content/",
    "/wp-includes/",
    "/cdn-cgi/",
    "/assets/",
    "/static/",
    "/media/",
    "/api/",
    "/downloads/",
    "/files/",
    "/archive/",
    "/resources/",
)

DEFAULT_SKIP_SUBDOMAIN_PATTERNS: Tuple[str, ...] = (
    "docs.",
    "api.",
    "cdn.",
    "static.",
    "media.",
    "assets.",
    "files.",
    "download.",
    "images.",
    "library.",
    "archive.",
    "resources.",
)

DEFAULT_PRIORITY_PATTERNS: Tuple[str, ...] = ("/contact", "/about", "/faq", "/help", "/support")

DEFAULT_USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (iPad; CPU OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1",
)


def coerce_url(value: str) -> str:
    """Добавляет схему https:// к адресу без схемы (``example.com`` → ``https://example.com``)."""
    value = value.strip()
    if value and "://" not in value:
        return f"https://{value}"
    return value


class SiteConfig(BaseModel):
    """Настройки одного сайта в пакетном обходе."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    start_url: str = Field(..., min_length=1, description="Стартовый URL сайта.")
    allowed_domains: Tuple[str, ...] = Field(
        default=(), description="Дополнительные домены, ссылки на которые не считаются внешними."
    )

    @field_validator("start_url", mode="before")
    def _add_scheme(cls, v: Any) -> Any:
        if isinstance(v, str):
            return coerce_url(v)
        return v

    @field_validator("allowed_domains", mode="before")
    def _lower_domains(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return tuple(str(d).strip().lower() for d in v if str(d).strip())
        return v


class SpiderConfig(BaseModel):
    """Конфигурация краулера: лимиты обхода, вежливость и правила классификации ссылок."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_depth: int = Field(10, ge=0, description="Максимальная глубина обхода ссылок.")
    max_loops: int = Field(50, ge=1, description="Максимальное число раундов обхода сайта.")
    max_concurrent: int = Field(30, ge=1, description="Параллельных запросов на один сайт.")
    max_concurrent_sites: int = Field(5, ge=1, description="Параллельно обходимых сайтов.")
    min_delay_ms: int = Field(100, ge=0, description="Минимальная пауза перед запросом (мс).")
    max_delay_ms: int = Field(2000, ge=0, description="Максимальная пауза перед запросом (мс).")
    trap_threshold: int = Field(50, ge=1, description="Порог повторов сигнатуры URL до флага ловушки.")

    skip_patterns: Tuple[str, ...] = Field(
        DEFAULT_SKIP_PATTERNS, description="Подстроки или 're:'-регулярки для пропуска URL."
    )
    skip_subdomain_patterns: Tuple[str, ...] = Field(
        DEFAULT_SKIP_SUBDOMAIN_PATTERNS, description="Префиксы поддоменов для пропуска."
    )
    priority_patterns: Tuple[str, ...] = Field(
        DEFAULT_PRIORITY_PATTERNS, description="Подстроки или 're:'-регулярки приоритетных URL."
    )
    allowed_domains: Tuple[str, ...] = Field(
        default=(), description="Внешние домены, разрешённые для всех сайтов."
    )
    user_agents: Tuple[str, ...] = Field(
        DEFAULT_USER_AGENTS, min_length=1, description="Ротация заголовков User-Agent."
    )

    request_timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    retry_times: int = Field(2, ge=0, description="Число повторных попыток при 5xx/429.")
    retry_backoff: float = Field(0.5, ge=0, description="Базовая пауза экспоненциального backoff.")
    max_redirects: int = Field(10, ge=0, description="Максимум редиректов на один запрос.")
    site_timeout: Optional[float] = Field(
        None, gt=0, description="Дедлайн обхода одного сайта (секунд); None означает без ограничения."
    )

    output_dir: str = Field("output/crawler", min_length=1, description="Каталог JSON-результатов.")
    debug_dir: str = Field("debug", min_length=1, description="Каталог отладочных HTML-снимков.")
    capture_debug_html: bool = Field(True, description="Сохранять страницы без ссылок.")

    @field_validator("skip_patterns", "priority_patterns")
    def _check_regex(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        for raw in v:
            if raw.startswith(REGEX_PREFIX):
                try:
                    re.compile(raw[len(REGEX_PREFIX):])
                except re.error as exc:
                    raise ValueError(f"invalid regex {raw!r}: {exc}") from exc
            elif not raw:
                raise ValueError("empty pattern")
        return v

    @field_validator("user_agents")
    def _check_agents(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not ua.strip() for ua in v):
            raise ValueError("user agent must not be blank")
        return v

    @model_validator(mode="after")
    def _check_delays(self) -> SpiderConfig:
        if self.min_delay_ms > self.max_delay_ms:
            raise ValueError(
                f"min_delay_ms ({self.min_delay_ms}) > max_delay_ms ({self.max_delay_ms})"
            )
        return self


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def build_config(**values: Any) -> SpiderConfig:
    """Создаёт проверенный SpiderConfig; ошибки валидации превращаются в ConfigError."""
    try:
        return SpiderConfig(**values)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def override_config(config: SpiderConfig, overrides: Dict[str, Any]) -> SpiderConfig:
    """Возвращает новый конфиг с переопределёнными полями (None-значения игнорируются)."""
    updates = {k: v for k, v in overrides.items() if v is not None}
    if not updates:
        return config
    return build_config(**{**config.model_dump(), **updates})


def load_config(path: Union[str, Path, None]) -> SpiderConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект SpiderConfig.
    Без пути использует configs/default.yaml, а при его отсутствии значения по умолчанию.
    При отсутствии явно указанного файла бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return SpiderConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ConfigError(f"Неподдерживаемый формат конфига: {suffix}")

    return build_config(**data)


__all__ = [
    "SiteConfig",
    "SpiderConfig",
    "build_config",
    "coerce_url",
    "load_config",
    "override_config",
]
