# File: site_spider/utils.py
"""site_spider.utils: URL normalization, domain helpers and URL-list loading."""

from __future__ import annotations

import posixpath
import re
import string
from pathlib import Path
from typing import List, Sequence, Union
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from site_spider.config import coerce_url
from site_spider.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "extract_base_domain",
    "is_same_domain",
    "matches_subdomain_pattern",
    "domain_to_filename",
    "read_url_list",
)

_DEFAULT_PORTS = {"http": 80, "https": 443}
# RFC 3986 pchar plus "/" – left untouched when re-quoting paths
_PATH_SAFE = "/:@!$&'()*+,;=-._~"
_UNRESERVED = frozenset(string.ascii_letters + string.digits + "-._~")
_PCT_ESCAPE = re.compile(r"%([0-9A-Fa-f]{2})")


def _requote_path(path: str) -> str:
    """Percent-encode *path*; of the existing escapes only unreserved characters are decoded."""
    chunks: List[str] = []
    pos = 0
    for match in _PCT_ESCAPE.finditer(path):
        chunks.append(quote(path[pos:match.start()], safe=_PATH_SAFE))
        char = chr(int(match.group(1), 16))
        chunks.append(char if char in _UNRESERVED else "%" + match.group(1).upper())
        pos = match.end()
    chunks.append(quote(path[pos:], safe=_PATH_SAFE))
    return "".join(chunks)


def _host(url: str) -> str:
    parsed = urlsplit(url)
    host = (parsed.hostname or "").lower()
    if not host:
        raise ValueError(f"No host in URL: {url}")
    return host


def normalize_url(url: str) -> str:
    """Canonical form of an absolute http(s) URL.

    Scheme and host are lower-cased, default ports and fragments dropped,
    dot segments collapsed, the trailing slash removed from every non-root
    path and query parameters sorted.  Percent-escapes of unreserved
    characters are decoded; other escapes such as ``%2F`` are kept upper-cased.  Raises :class:`ValueError` for
    non-http(s) or host-less input.
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise ValueError(f"Unsupported scheme in URL: {url}")
    host = (parts.hostname or "").lower()
    if not host:
        raise ValueError(f"No host in URL: {url}")
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    netloc = host if port is None or port == _DEFAULT_PORTS[scheme] else f"{host}:{port}"

    path = _requote_path(parts.path or "/")
    norm = posixpath.normpath(path)
    if norm.startswith("//"):
        norm = "/" + norm.lstrip("/")
    if norm == ".":
        norm = "/"
    if norm != "/":
        norm = norm.rstrip("/") or "/"

    qs = parse_qsl(parts.query, keep_blank_values=True)
    qs.sort()
    query = urlencode(qs, doseq=True)
    return urlunsplit((scheme, netloc, norm, query, ""))


def extract_base_domain(url: str) -> str:
    """Host of *url* without a leading ``www.`` (subdomains other than www are kept)."""
    host = _host(url)
    return host[4:] if host.startswith("www.") else host


def is_same_domain(url: str, base_domain: str) -> bool:
    """True when *url* lives on *base_domain* or one of its subdomains (``www.`` ignored)."""
    try:
        host = extract_base_domain(url)
    except ValueError:
        return False
    return host == base_domain or host.endswith(f".{base_domain}")


def matches_subdomain_pattern(url: str, patterns: Sequence[str]) -> bool:
    """True when the host of *url* (without ``www.``) starts with one of *patterns*."""
    try:
        host = extract_base_domain(url)
    except ValueError:
        return False
    return any(host.startswith(p) for p in patterns)


def domain_to_filename(domain: str, output_dir: Union[str, Path] = "output/crawler") -> Path:
    """``example.com:8080`` → ``<output_dir>/example_com_8080.json``."""
    name = domain.replace(".", "_").replace(":", "_") + ".json"
    return Path(output_dir) / name


def read_url_list(path: Union[str, Path]) -> List[str]:
    """Читает список URL: пустые строки и комментарии (#) пропускаются, схема добавляется при отсутствии."""
    p = Path(path).expanduser()
    if not p.is_file():
        logger.error("URL list not found: %s", p)
        raise FileNotFoundError(f"URL list file not found: {p}")
    urls = []
    for line in p.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            urls.append(coerce_url(stripped))
    logger.debug("Loaded %d URLs from %s", len(urls), p)
    return urls
