"""Time-bounded cache of caller-supplied price series.

Owned by the request layer and passed in explicitly.  Entries expire
after ``ttl_seconds``; moving-average results are memoised per
``(symbol, period)`` and dropped together with their series.
"""

import logging
import time
from threading import RLock
from typing import Callable, Optional

from portlab.data.models import PriceSeries
from portlab.strategy.indicators import moving_average
from portlab.strategy.models import MASeries

logger = logging.getLogger("portlab.cache")


class SeriesCache:
    """Symbol-keyed store of price series with a TTL.

    Safe to share between request threads: every access to the entries and
    the memo goes through one re-entrant lock.

    Args:
        ttl_seconds: Age after which an entry is treated as missing.
        clock: Returns the current time in seconds (``time.time`` by default).
    """

    def __init__(
        self,
        ttl_seconds: float = 86_400.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = RLock()
        self._series: dict[str, tuple[PriceSeries, float]] = {}
        self._ma: dict[tuple[str, int], MASeries] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    # ── Mutation ─────────────────────────────────────────────────────────

    def put(self, symbol: str, series: PriceSeries) -> None:
        """Store *series* under *symbol*, replacing any previous entry."""
        key = symbol.upper()
        with self._lock:
            self._drop_ma(key)
            self._series[key] = (list(series), self._clock())
        logger.info("Cached %d points for %s", len(series), key)

    def invalidate(self, symbol: str) -> None:
        """Remove *symbol* and its memoised moving averages."""
        key = symbol.upper()
        with self._lock:
            self._series.pop(key, None)
            self._drop_ma(key)

    # ── Queries ──────────────────────────────────────────────────────────

    def get(self, symbol: str) -> Optional[PriceSeries]:
        """Return the cached series, or ``None`` when absent or expired."""
        key = symbol.upper()
        with self._lock:
            entry = self._series.get(key)
            if entry is None:
                return None
            series, stored_at = entry
            if self._clock() - stored_at >= self._ttl:
                logger.debug("Cache entry for %s expired", key)
                self.invalidate(key)
                return None
            return series

    def get_ma(self, symbol: str, period: int) -> Optional[MASeries]:
        """Moving average of the cached series, computed at most once per entry."""
        with self._lock:
            series = self.get(symbol)
            if series is None:
                return None
            key = (symbol.upper(), period)
            if key not in self._ma:
                self._ma[key] = moving_average(series, period)
            return self._ma[key]

    def symbols(self) -> list[str]:
        """Symbols with a fresh entry, sorted."""
        with self._lock:
            return sorted(s for s in list(self._series) if self.get(s) is not None)

    def _drop_ma(self, key: str) -> None:
        # caller holds the lock
        for ma_key in [k for k in self._ma if k[0] == key]:
            del self._ma[ma_key]
