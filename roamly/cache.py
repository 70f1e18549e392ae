"""Small TTL cache with an injectable clock."""
from __future__ import annotations

import time
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar
from urllib.parse import urlsplit, urlunsplit

V = TypeVar("V")


def fingerprint(url: str) -> str:
    """Normalise a URL into a cache key: lower-case scheme/host, no fragment or trailing slash."""
    try:
        parts = urlsplit((url or "").strip())
    except ValueError:
        return (url or "").strip()
    path = parts.path.rstrip("/") or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


class TTLCache(Generic[V]):
    def __init__(self, ttl: float, *, clock: Callable[[], float] = time.monotonic, max_entries: int = 512):
        self.ttl = ttl
        self.clock = clock
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[float, V]] = {}

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires, value = entry
        if expires <= self.clock():
            del self._entries[key]
            return None
        return value

    def put(self, key: str, value: V) -> None:
        if self.ttl <= 0:
            return
        now = self.clock()
        if len(self._entries) >= self.max_entries:
            self._entries = {k: e for k, e in self._entries.items() if e[0] > now}
            while len(self._entries) >= self.max_entries:
                self._entries.pop(next(iter(self._entries)))
        self._entries[key] = (now + self.ttl, value)

    def __len__(self) -> int:
        return len(self._entries)
