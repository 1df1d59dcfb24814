"""Injectable key-value stores with TTL for remote-store responses.

Two implementations share the same ``get``/``set`` surface:

- ``TtlCache``: in-memory store, per-entry expiry. One instance per client,
  never a module-level singleton, so callers and tests control its lifetime.
- ``FileCache``: filesystem store keyed by a SHA-256 of the cache key. Used as
  the persistent fallback when the network is unavailable; freshness is judged
  from the file modification time.

Both accept a ``clock`` callable for deterministic expiry in tests.
"""

from __future__ import annotations

import hashlib
import os
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

from config import settings

__all__ = ["TtlCache", "FileCache", "build_cache_key"]

T = TypeVar("T")

DEFAULT_FILE_TTL = 7 * 24 * 3600  # one week; stale data beats no data offline


def build_cache_key(base_url: str, project: str, *parts: str) -> str:
    return "|".join((base_url, project) + parts)


class TtlCache(Generic[T]):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[float, T]] = {}

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: T, ttl: float) -> None:
        self._entries[key] = (self._clock() + ttl, value)


@dataclass
class FileCache:
    directory: str = os.path.join(settings.DATA_DIR, "_cache")
    ttl: float = DEFAULT_FILE_TTL
    clock: Callable[[], float] = time.time

    def _path(self, key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self.directory, digest + ".cache")

    def get(self, key: str) -> Optional[str]:
        p = self._path(key)
        if not os.path.exists(p):
            return None
        try:
            if self.clock() - os.stat(p).st_mtime > self.ttl:
                return None
            with open(p, "r", encoding="utf-8") as fh:
                return fh.read()
        except OSError:
            return None

    def set(self, key: str, content: str) -> None:
        os.makedirs(self.directory, exist_ok=True)
        with open(self._path(key), "w", encoding="utf-8") as fh:
            fh.write(content)
