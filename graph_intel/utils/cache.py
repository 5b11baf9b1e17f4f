"""
Path Result Caching

Memoizes ranked path lists per (source, target, strategy parameters). Entries
are scoped to one network index version so results from a previous snapshot
are never returned for a new one.
"""

import hashlib
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path as FilePath
from typing import Any, Iterable, Optional

import diskcache
from pydantic import BaseModel

from graph_intel.models.entities import Path, PathStrategy

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    """A cached path computation."""
    key: str
    scope: str
    paths: list[Path]
    created_at: datetime
    expires_at: datetime


def make_cache_key(
    source_id: str,
    target_id: str,
    strategies: Iterable[PathStrategy],
    max_hops: int,
    max_paths: Optional[int] = None,
    min_path_strength: float = 0.0,
) -> tuple:
    """Canonical key: the strategy set is order-insensitive."""
    strategy_set = tuple(sorted(PathStrategy(s).value for s in strategies))
    return (source_id, target_id, strategy_set, max_hops, max_paths, round(min_path_strength, 6))


class ResultCache:
    """Snapshot-scoped path cache.

    The memory backend is a plain dict. The disk backend stores entries in a
    diskcache database with keys derived from the scope, so entries written
    for another index version are unreachable.
    """

    def __init__(
        self,
        backend: str = "memory",
        cache_path: str = ".cache/path_results",
        ttl_days: int = 1,
        max_size_mb: int = 200,
        enabled: bool = True,
        scope: Optional[str] = None,
    ):
        """Initialize cache.

        Args:
            backend: 'memory' or 'disk'
            cache_path: Directory for the disk backend
            ttl_days: Time-to-live for disk entries
            max_size_mb: Maximum disk cache size in MB (0 = unlimited)
            enabled: Whether caching is enabled
            scope: Initial index version the cache is bound to
        """
        if backend not in ("memory", "disk"):
            raise ValueError(f"Unknown cache backend: {backend}")

        self.backend = backend
        self.enabled = enabled
        self.ttl_days = ttl_days
        self.cache_path = FilePath(cache_path)
        self.max_size_bytes = max_size_mb * 1024 * 1024 if max_size_mb > 0 else None
        self.scope = scope

        self._memory: dict[tuple, list[Path]] = {}
        self._disk: Optional[diskcache.Cache] = None
        self.hits = 0
        self.misses = 0

        if self.enabled and self.backend == "disk":
            self._init_disk()

    def _init_disk(self) -> None:
        self.cache_path.mkdir(parents=True, exist_ok=True)
        kwargs = {"size_limit": self.max_size_bytes} if self.max_size_bytes else {}
        self._disk = diskcache.Cache(str(self.cache_path), **kwargs)
        logger.debug(f"Path cache initialized at {self.cache_path}")

    def bind(self, index_or_version: Any) -> None:
        """Scope the cache to an index version, dropping entries from any other."""
        version = getattr(index_or_version, "version", index_or_version)
        if version == self.scope:
            return
        if self.scope is not None:
            logger.debug(f"Snapshot changed ({self.scope} -> {version}), clearing path cache")
        self._memory.clear()
        self.scope = version

    def _disk_key(self, key: tuple) -> str:
        key_string = json.dumps([self.scope, *key], sort_keys=True)
        return hashlib.sha256(key_string.encode()).hexdigest()

    def get(self, key: tuple) -> Optional[list[Path]]:
        """Retrieve cached paths, or None on a miss."""
        if not self.enabled or self.scope is None:
            return None

        if self.backend == "memory":
            paths = self._memory.get(key)
        else:
            paths = self._disk_get(key)

        if paths is None:
            self.misses += 1
            return None

        self.hits += 1
        return [p.model_copy(deep=True) for p in paths]

    def _disk_get(self, key: tuple) -> Optional[list[Path]]:
        disk_key = self._disk_key(key)
        try:
            entry_data = self._disk.get(disk_key)
            if entry_data is None:
                return None

            entry = CacheEntry.model_validate_json(entry_data)
            if datetime.now() > entry.expires_at or entry.scope != self.scope:
                self._disk.delete(disk_key)
                return None

            logger.debug(f"Cache hit for key {disk_key[:16]}...")
            return entry.paths

        except (diskcache.Timeout, ValueError) as e:
            logger.warning(f"Cache read error: {e}")
            return None

    def set(self, key: tuple, paths: list[Path]) -> None:
        """Store paths for a key in the current scope."""
        if not self.enabled or self.scope is None:
            return

        if self.backend == "memory":
            self._memory[key] = [p.model_copy(deep=True) for p in paths]
            return

        disk_key = self._disk_key(key)
        now = datetime.now()
        entry = CacheEntry(
            key=disk_key,
            scope=self.scope,
            paths=list(paths),
            created_at=now,
            expires_at=now + timedelta(days=self.ttl_days),
        )
        try:
            self._disk.set(disk_key, entry.model_dump_json())
        except diskcache.Timeout as e:
            logger.warning(f"Cache write error: {e}")

    def clear(self) -> None:
        """Clear all cache entries."""
        self._memory.clear()
        if self._disk is not None:
            self._disk.clear()
        self.hits = 0
        self.misses = 0
        logger.info("Path cache cleared")

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        if not self.enabled:
            return {"enabled": False}

        count = len(self._memory) if self.backend == "memory" else len(self._disk)
        return {
            "enabled": True,
            "backend": self.backend,
            "scope": self.scope,
            "count": count,
            "hits": self.hits,
            "misses": self.misses,
        }

    def close(self) -> None:
        """Close the disk backend."""
        if self._disk is not None:
            self._disk.close()
