"""
In-memory expiring cache for read-mostly listings (venues, companies, stats).

Entries are checked against their expiry when read; an expired entry counts as
a miss and is dropped. Nothing else evicts entries.
"""
import time
import logging
from typing import Any, Dict, Optional, Tuple

from storefront.config import settings

logger = logging.getLogger(__name__)


class TTLCache:
    """String-keyed cache with a per-entry time to live"""
    
    VENUES_KEY = "venues:list"
    COMPANIES_KEY = "companies:list"
    ADMIN_STATS_PREFIX = "admin:stats:"
    ADMIN_STATS_KEY = ADMIN_STATS_PREFIX + "period:{period}"
    
    def __init__(self, default_ttl: int = 300, clock=time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
    
    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache MISS: {key}")
            return None
        
        value, expires_at = entry
        if self._clock() >= expires_at:
            logger.debug(f"Cache EXPIRED: {key}")
            del self._entries[key]
            return None
        
        logger.debug(f"Cache HIT: {key}")
        return value
    
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + ttl)
    
    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None
    
    def delete_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with prefix"""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.info(f"Invalidated {len(keys)} cache entries with prefix '{prefix}'")
        return len(keys)
    
    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count
    
    def stats(self) -> Dict[str, int]:
        now = self._clock()
        active = sum(1 for _, expires_at in self._entries.values() if now < expires_at)
        return {
            "total_entries": len(self._entries),
            "active_entries": active,
            "expired_entries": len(self._entries) - active
        }


cache = TTLCache(default_ttl=settings.CACHE_TTL_SECONDS)
