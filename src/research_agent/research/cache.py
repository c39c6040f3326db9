"""Two-tier result cache with lazy TTL expiry.

Tier 1 is an in-process dict. Tier 2 is one JSON file per key. A lookup reads
tier 2 only when tier 1 misses, and a tier-2 hit is not copied back into tier 1.
Expired entries are removed at read time from whichever tier they were found
in; nothing sweeps in the background.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
import time
from collections.abc import Callable, Mapping
from functools import partial
from pathlib import Path
from typing import Any

from anyio import to_thread
from pydantic import ValidationError

from ..exceptions import StorageError
from .models import CacheEntry

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def canonical_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Drop None values (recursively) so that absent and null fields compare equal."""
    out: dict[str, Any] = {}
    for key, value in options.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            value = canonical_options(value)
        out[str(key)] = value
    return out


def cache_key(topic: str, options: Mapping[str, Any]) -> str:
    """Deterministic key for a (topic, options) pair, independent of field order."""
    payload = {"topic": topic, "options": canonical_options(options)}
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


class ResultCache:
    """Key/value cache with a memory tier and an optional durable file tier."""

    def __init__(
        self,
        directory: str | Path | None = None,
        default_ttl: float = 86400,
        *,
        clock: Clock = time.time,
    ):
        """Initialize the cache.

        Args:
            directory: Directory for durable entries. None keeps the cache memory-only.
            default_ttl: TTL in seconds used when `put` is not given one.
            clock: Wall-clock source in seconds, injectable for tests.
        """
        self.directory = Path(directory).expanduser() if directory is not None else None
        if self.directory is not None:
            self.directory.mkdir(parents=True, exist_ok=True)
        self.default_ttl = default_ttl
        self._clock = clock
        self._memory: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        """Number of entries in the memory tier."""
        return len(self._memory)

    def _entry_path(self, key: str) -> Path:
        if self.directory is None:
            raise StorageError("Cache has no durable directory")
        safe_key = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Any | None:
        """Return the cached payload for `key`, or None on a miss."""
        now = self._clock()

        with self._lock:
            entry = self._memory.get(key)
            if entry is not None:
                if entry.is_valid(now):
                    return entry.payload
                del self._memory[key]
                logger.debug(f"Expired memory cache entry {key[:12]}")

        if self.directory is None:
            return None
        return self._read_durable(key, now)

    def _read_durable(self, key: str, now: float) -> Any | None:
        path = self._entry_path(key)
        if not path.exists():
            return None

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            entry = CacheEntry(
                key=key,
                payload=raw["data"],
                created_at=raw["created_at"],
                ttl_seconds=raw.get("ttl_seconds", self.default_ttl),
            )
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable cache file {path}: {e}")
            return None

        if entry.is_valid(now):
            return entry.payload

        path.unlink(missing_ok=True)
        logger.debug(f"Expired durable cache entry {key[:12]}")
        return None

    def put(self, key: str, payload: Any, ttl_seconds: float | None = None) -> None:
        """Store `payload` in both tiers.

        Raises:
            StorageError: If the durable file cannot be written. The memory tier is
                updated regardless.
        """
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(key=key, payload=payload, created_at=self._clock(), ttl_seconds=ttl)

        with self._lock:
            self._memory[key] = entry

        if self.directory is None:
            return

        path = self._entry_path(key)
        tmp_path = path.with_name(f"{path.name}.{threading.get_ident()}.tmp")
        record = {"data": payload, "created_at": entry.created_at, "ttl_seconds": ttl}
        try:
            tmp_path.write_text(json.dumps(record, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write cache file {path}: {e}") from e

    def delete(self, key: str) -> bool:
        """Remove `key` from both tiers. Returns True if anything was removed."""
        with self._lock:
            removed = self._memory.pop(key, None) is not None

        if self.directory is not None:
            path = self._entry_path(key)
            if path.exists():
                path.unlink(missing_ok=True)
                removed = True
        return removed

    def clear(self) -> int:
        """Remove every entry from both tiers. Returns the number of durable files deleted."""
        with self._lock:
            self._memory.clear()

        if self.directory is None:
            return 0

        count = 0
        for path in self.directory.glob("*.json"):
            path.unlink(missing_ok=True)
            count += 1
        logger.info(f"Cleared {count} cache files from {self.directory}")
        return count

    async def get_async(self, key: str) -> Any | None:
        """Async wrapper for get()."""
        return await to_thread.run_sync(self.get, key)

    async def put_async(self, key: str, payload: Any, ttl_seconds: float | None = None) -> None:
        """Async wrapper for put()."""
        await to_thread.run_sync(partial(self.put, key, payload, ttl_seconds))
