"""
Per-file findings cache for Site Insight.

Backed by diskcache (SQLite). A key covers the file's relative path, the
sha256 of its contents and the scan context, so an edited file or a changed
detector table is always rescanned.
"""

import hashlib
import json
import threading
from pathlib import Path
from typing import Any, Callable, Optional

from diskcache import Cache

from .logging_config import get_logger
from .scanning.models import FileScan

logger = get_logger(__name__)

_CHUNK = 1 << 16


class FindingCache:
    """
    Disk cache of :class:`FileScan` results shared by all unit tasks.

    Features:
    - Content-addressed keys (path + sha256 + scan context)
    - TTL-based expiration
    - Per-key atomic reads and writes, safe across worker threads
    - Failures are logged and treated as misses, never raised
    """

    def __init__(
        self,
        cache_dir: str = ".site-insight-cache",
        ttl_hours: int = 168,
        enabled: bool = True
    ):
        self.enabled = enabled
        self.ttl_seconds = ttl_hours * 3600
        self.hits = 0
        self.misses = 0
        self._lock = threading.Lock()

        if self.enabled:
            self.cache = Cache(cache_dir)
            logger.debug(f"Findings cache at {cache_dir}, ttl={ttl_hours}h")
        else:
            self.cache = None

    @staticmethod
    def content_hash(filepath: Path) -> str:
        """sha256 of the file contents, read in chunks."""
        digest = hashlib.sha256()
        with open(filepath, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK), b""):
                digest.update(chunk)
        return digest.hexdigest()

    @staticmethod
    def key_for(relative: str, content_hash: str, context: str) -> str:
        """
        Build a cache key.

        Args:
            relative: File path relative to its unit root
            content_hash: sha256 of the file contents
            context: Everything else the scan depends on (detector table
                fingerprint, unit name, origin)
        """
        return hashlib.sha256(f"{relative}:{content_hash}:{context}".encode()).hexdigest()

    def get(self, key: str) -> Optional[FileScan]:
        """Return the cached scan, or None if absent, expired or unreadable."""
        if self.cache is None:
            return None

        try:
            value = self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed: {e}")
            return None
        if value is not None and not isinstance(value, FileScan):
            logger.warning(f"Ignoring cache entry {key[:16]} of type {type(value).__name__}")
            return None
        return value

    def set(self, key: str, value: FileScan) -> None:
        if self.cache is None:
            return

        try:
            self.cache.set(key, value, expire=self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Cache write failed: {e}")

    def scan_through(
        self,
        filepath: Path,
        relative: str,
        context: str,
        scan: Callable[[], FileScan],
    ) -> FileScan:
        """
        Return the cached scan of ``filepath`` or run ``scan`` and store it.

        Unreadable results are not stored so a fixed file is retried. When
        the file cannot be hashed the scan runs uncached.
        """
        if self.cache is None:
            return scan()

        try:
            key = self.key_for(relative, self.content_hash(filepath), context)
        except OSError:
            return scan()

        cached = self.get(key)
        with self._lock:
            if cached is not None:
                self.hits += 1
            else:
                self.misses += 1
        if cached is not None:
            logger.debug(f"Cache hit for {relative}")
            return cached

        result = scan()
        if result.readable:
            self.set(key, result)
        return result

    def clear(self) -> None:
        if self.cache is None:
            return

        try:
            self.cache.clear()
            logger.info("Findings cache cleared")
        except Exception as e:
            logger.warning(f"Cache clear failed: {e}")

    def stats(self) -> dict[str, Any]:
        """Entry count, directory and on-disk volume, plus this instance's hit counts."""
        if self.cache is None:
            return {"enabled": False}

        try:
            return {
                "enabled": True,
                "size": len(self.cache),
                "directory": self.cache.directory,
                "volume": self.cache.volume(),
                "hits": self.hits,
                "misses": self.misses,
            }
        except Exception as e:
            logger.warning(f"Cache stats failed: {e}")
            return {"enabled": True, "error": str(e)}

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()


def compute_context_hash(context: dict) -> str:
    """First 16 hex chars of the sha256 of ``context`` as sorted JSON."""
    return hashlib.sha256(json.dumps(context, sort_keys=True).encode()).hexdigest()[:16]
