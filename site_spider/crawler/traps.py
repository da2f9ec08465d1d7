# site_spider/crawler/traps.py
"""
Link-trap detection by structural URL signatures.

Calendars, unbounded pagination and faceted search produce endless URLs
that differ only in IDs or query values.  Such URLs share a *signature*:
the host and path with ID-like segments generalized to ``*`` plus the
sorted query keys.  Once a signature has been observed ``threshold``
times it is flagged for the rest of the run and further URLs with it are
classified as traps.
"""
from __future__ import annotations

import re
from collections import Counter
from typing import Dict, FrozenSet, Set
from urllib.parse import parse_qsl, urlsplit

from site_spider.errors import ConfigError

WILDCARD = "*"

_ID_SEGMENTS = (
    re.compile(r"^\d+$"),
    re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.I),
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    re.compile(r"^(?=.*\d)[0-9a-f]{8,}$", re.I),
    re.compile(r"^(?=.*\d)(?=.*[a-z])[a-z0-9_-]{16,}$", re.I),
)
_DIGITS = re.compile(r"\d+")


def _generalize(segment: str) -> str:
    if any(p.match(segment) for p in _ID_SEGMENTS):
        return WILDCARD
    return _DIGITS.sub(WILDCARD, segment)


def url_signature(url: str) -> str:
    """``https://ex.com/cal/2024-01-05/7?b=2&a=1`` → ``ex.com/cal/*/*?a&b``."""
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    segments = [_generalize(s) for s in parts.path.split("/") if s]
    path = "/" + "/".join(segments)
    keys = sorted({k for k, _ in parse_qsl(parts.query, keep_blank_values=True)})
    return f"{host}{path}?{'&'.join(keys)}" if keys else f"{host}{path}"


class TrapDetector:
    """Monotonic per-signature counters with one-way flagging."""

    def __init__(self, threshold: int) -> None:
        if threshold < 1:
            raise ConfigError(f"trap threshold must be >= 1, got {threshold}")
        self.threshold = threshold
        self._counts: Counter[str] = Counter()
        self._flagged: Set[str] = set()

    signature = staticmethod(url_signature)

    def observe(self, url: str) -> bool:
        """Count one occurrence of *url*'s signature; True if the signature is flagged."""
        sig = url_signature(url)
        self._counts[sig] += 1
        if self._counts[sig] >= self.threshold:
            self._flagged.add(sig)
        return sig in self._flagged

    def is_flagged(self, url: str) -> bool:
        return url_signature(url) in self._flagged

    def count(self, url: str) -> int:
        return self._counts[url_signature(url)]

    @property
    def flagged(self) -> FrozenSet[str]:
        return frozenset(self._flagged)

    def snapshot(self) -> Dict[str, int]:
        return dict(self._counts)
