"""
TTL Cache
=========

Key -> value store with per-entry expiry, backed by one flat JSON file.

Every upstream call (quotes, history, news, analyst targets) goes through
this cache so a symbol is fetched at most once per TTL window.

STORE FORMAT:
    {
      "<key>": {"data": <json value>, "timestamp": <epoch ms>, "expiresAt": <epoch ms>},
      ...
    }

PERSISTENCE RULES:
- The whole store is read once at construction
- Every mutating operation rewrites the whole store (no append log)
- A missing or corrupt store is treated as an empty cache
- Write failures are logged; the cache keeps serving from memory
- No locking: overlapping writers race and the last write wins
- Values are copied on set and get, so callers never alias stored entries
"""

import copy
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


class CacheIOError(OSError):
    """Raised when the backing store cannot be read or written."""
    pass


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _format_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


@dataclass
class CacheEntry:
    """
    One cached value.

    Attributes:
        data: Cached JSON-compatible value
        timestamp: Creation time (epoch milliseconds)
        expires_at: Expiry time (epoch milliseconds)
    """
    data: Any
    timestamp: int
    expires_at: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "timestamp": self.timestamp,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CacheEntry":
        return cls(
            data=raw.get("data"),
            timestamp=int(raw["timestamp"]),
            expires_at=int(raw["expiresAt"]),
        )


class TTLCache:
    """
    Flat-file TTL cache.

    Usage:
        cache = TTLCache(Path("cache/market-data.json"))

        cache.set("featured_stocks_daily", ["AAPL", "MSFT"])
        cache.get("featured_stocks_daily")      # ["AAPL", "MSFT"]
        cache.set("quote_AAPL", {...}, ttl=timedelta(minutes=15))

        cache.get_stats()  # {"totalKeys": 2, "validKeys": 2, "expiredKeys": 0}
    """

    def __init__(
        self,
        cache_path: Path,
        default_ttl: timedelta = DEFAULT_TTL,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize the cache and load the backing store.

        Args:
            cache_path: JSON file holding all entries
            default_ttl: TTL applied when set() is called without one
            clock: Returns the current time in epoch milliseconds
        """
        self.cache_path = Path(cache_path)
        self.default_ttl = default_ttl
        self._clock = clock or _epoch_ms
        self._entries: Dict[str, CacheEntry] = {}

        try:
            self._entries = self._read_store()
        except CacheIOError as e:
            logger.error(f"Failed to load cache from {self.cache_path}: {e}")
            self._entries = {}

    # =========================================================================
    # Backing store
    # =========================================================================

    def _read_store(self) -> Dict[str, CacheEntry]:
        if not self.cache_path.exists():
            logger.debug(f"No cache file at {self.cache_path}, starting empty")
            return {}

        try:
            raw = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CacheIOError(f"Unreadable cache store: {e}") from e

        if not isinstance(raw, dict):
            raise CacheIOError(f"Cache store must be a JSON object, got {type(raw).__name__}")

        entries = {}
        for key, value in raw.items():
            try:
                entries[key] = CacheEntry.from_dict(value)
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning(f"Dropping malformed cache entry: {key}")

        logger.info(f"Loaded {len(entries)} cache entries from {self.cache_path}")
        return entries

    def _write_store(self) -> None:
        payload = {key: entry.to_dict() for key, entry in self._entries.items()}
        try:
            text = json.dumps(payload, indent=2)
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(text, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise CacheIOError(f"Cannot write cache store: {e}") from e

    def _persist(self) -> None:
        try:
            self._write_store()
            logger.debug(f"Saved cache to {self.cache_path}")
        except CacheIOError as e:
            logger.error(f"Failed to save cache (serving from memory): {e}")

    # =========================================================================
    # Public API
    # =========================================================================

    def set(self, key: str, value: Any, ttl: Optional[timedelta] = None) -> None:
        """Store a value; expiry = now + ttl (default TTL when None)."""
        now = self._clock()
        ttl = self.default_ttl if ttl is None else ttl
        expires_at = now + int(ttl.total_seconds() * 1000)

        self._entries[key] = CacheEntry(data=copy.deepcopy(value), timestamp=now, expires_at=expires_at)
        self._persist()
        logger.info(f"Cached data for key: {key}, expires at: {_format_ms(expires_at)}")

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or `default` on a miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss for key: {key}")
            return default

        now = self._clock()
        if entry.is_expired(now):
            logger.info(f"Cache expired for key: {key}")
            del self._entries[key]
            self._persist()
            return default

        hours_remaining = round((entry.expires_at - now) / 3_600_000)
        logger.info(f"Cache hit for key: {key}, expires in {hours_remaining} hours")
        return copy.deepcopy(entry.data)

    def has(self, key: str) -> bool:
        """Check for an unexpired entry (evicts it when expired)."""
        entry = self._entries.get(key)
        if entry is None:
            return False

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._persist()
            return False

        return True

    def delete(self, key: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        if key not in self._entries:
            return False
        del self._entries[key]
        self._persist()
        logger.info(f"Deleted cache for key: {key}")
        return True

    def clear(self) -> None:
        """Remove every entry."""
        self._entries = {}
        self._persist()
        logger.info("Cleared all cache")

    def cleanup_expired(self) -> int:
        """Remove all expired entries. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]

        for key in expired:
            del self._entries[key]

        if expired:
            self._persist()
            logger.info(f"Cleaned up {len(expired)} expired cache entries")

        return len(expired)

    def get_stats(self) -> Dict[str, int]:
        """Counts of total, valid and expired (not yet swept) entries."""
        now = self._clock()
        total = len(self._entries)
        expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
        return {
            "totalKeys": total,
            "validKeys": total - expired,
            "expiredKeys": expired,
        }

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Raw entry access without expiry checks (for diagnostics)."""
        return self._entries.get(key)

    def keys(self):
        return list(self._entries.keys())

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self._entries)
