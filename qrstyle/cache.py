"""Grid Cache: bounded LRU of base rasters keyed by (payload, size, margin, ecc)."""

import threading
from collections import OrderedDict

from qrstyle.generator import BaseRaster, ECCLevel, encode, rasterize_grid
from qrstyle.logging import audit, get_logger

log = get_logger("cache")

DEFAULT_CAPACITY = 64

CacheKey = tuple[str, int, int, str]


class GridCache:
    """Memoizes the expensive, style-independent base raster.

    Thread-safe. Stored rasters are never handed out: every lookup returns a
    copy, so callers may draw on the result freely. Encoding runs outside the
    lock; when two threads miss on the same key at once, the first insert wins
    and the second thread's identical raster is discarded.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"cache capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._entries: OrderedDict[CacheKey, BaseRaster] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @staticmethod
    def make_key(payload: str, size: int, margin: int, ecc: ECCLevel) -> CacheKey:
        return (payload, size, margin, ecc.name)

    def lookup(self, key: CacheKey) -> BaseRaster | None:
        """Return a copy of the cached raster for *key*, counting the hit or miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
        audit("cache.hit", logger=log, payload=key[0][:80], size=key[1], margin=key[2], ecc=key[3])
        return entry.copy()

    def get_base_raster(self, payload: str, size: int, margin: int, ecc: ECCLevel) -> BaseRaster:
        """Return a private copy of the base raster, encoding it on first use.

        Raises:
            EncodingError: the payload does not fit at this ECC level and size.
        """
        return self.fetch(payload, size, margin, ecc)[0]

    def fetch(self, payload: str, size: int, margin: int, ecc: ECCLevel) -> tuple[BaseRaster, bool]:
        """Like get_base_raster, also reporting whether the lookup was a hit."""
        key = self.make_key(payload, size, margin, ecc)
        cached = self.lookup(key)
        if cached is not None:
            return cached, True

        audit("cache.miss", logger=log, payload=payload[:80], size=size, margin=margin, ecc=ecc.name)
        raster = rasterize_grid(encode(payload, ecc), size, margin)
        return self._insert(key, raster).copy(), False

    def _insert(self, key: CacheKey, raster: BaseRaster) -> BaseRaster:
        evicted = []
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                self._entries.move_to_end(key)
                return existing
            self._entries[key] = raster
            while len(self._entries) > self.capacity:
                evicted.append(self._entries.popitem(last=False)[0])
                self.evictions += 1
        for old in evicted:
            audit("cache.evicted", logger=log, payload=old[0][:80], size=old[1], margin=old[2], ecc=old[3])
        return raster

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": len(self._entries),
                "capacity": self.capacity,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._entries
