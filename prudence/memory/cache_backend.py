"""An in-process cache backend with periodic pruning."""

from __future__ import annotations

import atexit
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

from prudence.platform.cache import CacheBackend, CachedRepresentation, CacheKey
from prudence.platform.registry import register_type

log = logging.getLogger("prudence.memory")


@dataclass
class CacheGroup:
    """Keys of representations sharing a group name, and its latest expiry."""

    keys: list[CacheKey] = field(default_factory=list)
    expiration: float = 0.0

    def expired(self) -> bool:
        return time.time() > self.expiration


class MemoryCacheBackend(CacheBackend):
    """Keeps cached representations in memory; prunes expired entries periodically."""

    def __init__(self, prune_interval: float = 10.0):
        self.max_size = 0
        self._representations: dict[CacheKey, CachedRepresentation] = {}
        self._groups: dict[CacheKey, CacheGroup] = {}
        self._lock = threading.RLock()
        self._pruning = threading.Event()
        self.start_pruning(prune_interval)
        atexit.register(self.stop_pruning)

    def __len__(self) -> int:
        with self._lock:
            return len(self._representations)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._representations

    def load_representation(self, key: CacheKey) -> CachedRepresentation | None:
        with self._lock:
            cached = self._representations.get(key)
            if cached is None:
                return None
            if cached.expired():
                log.debug("cache expired: %s|%s", key, cached)
                del self._representations[key]
                return None
            return cached

    def store_representation(self, key: CacheKey, cached: CachedRepresentation) -> None:
        with self._lock:
            self._representations[key] = cached
            for name in cached.groups:
                group = self._groups.setdefault(name, CacheGroup())
                group.keys.append(key)
                live = []
                for member in group.keys:
                    member_cached = self._representations.get(member)
                    if member_cached is not None and not member_cached.expired():
                        live.append(member)
                        group.expiration = max(group.expiration, member_cached.expiration)
                group.keys = live

    def delete_representation(self, key: CacheKey) -> None:
        with self._lock:
            self._representations.pop(key, None)

    def delete_group(self, name: CacheKey) -> None:
        with self._lock:
            group = self._groups.get(name)
            if group is not None:
                for key in group.keys:
                    self._representations.pop(key, None)

    def prune(self) -> None:
        """Drop every expired representation and group."""
        with self._lock:
            for key, cached in list(self._representations.items()):
                if cached.expired():
                    log.debug("pruning representation: %s", key)
                    del self._representations[key]
            for name, group in list(self._groups.items()):
                if group.expired():
                    log.debug("pruning group: %s", name)
                    del self._groups[name]

    def start_pruning(self, seconds: float) -> None:
        """Prune every so many seconds in a background thread until stopped."""

        def run() -> None:
            while not self._pruning.wait(seconds):
                self.prune()

        threading.Thread(target=run, name="prudence-cache-pruning", daemon=True).start()

    def stop_pruning(self) -> None:
        self._pruning.set()


def create_memory_cache_backend(config: dict, context: Any) -> MemoryCacheBackend:
    """Constructor for the "MemoryCache" type."""
    return MemoryCacheBackend()


register_type("MemoryCache", create_memory_cache_backend)