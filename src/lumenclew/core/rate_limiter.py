"""
Daily Rate Limiter - Per-client scan quota with a UTC-midnight reset.

State lives in a process-local store that is injected into the limiter,
together with a clock, so tests can simulate date rollovers. Records reset
lazily: a record dated before today counts as zero until the next
increment rewrites it. Records that go stale are swept once per UTC day so
the table does not grow with every client ever seen.

Concurrent requests from the same client may both read a pre-increment
count; the limit is advisory and that imprecision is accepted.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Dict, Iterator, Optional, Tuple

import structlog


@dataclass
class RateLimitConfig:
    """Configuration for the daily rate limiter"""
    max_scans_per_day: int = 10
    stale_after_days: int = 1  # Records older than this are evicted


@dataclass
class RateLimitState:
    """Scan count of one client for one UTC date"""
    count: int
    reset_date: date


@dataclass
class RateLimitStatus:
    """Quota snapshot returned to clients"""
    scans_today: int
    max_scans_per_day: int
    remaining: int
    can_scan: bool
    reset_time: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "scansToday": self.scans_today,
            "maxScansPerDay": self.max_scans_per_day,
            "remaining": self.remaining,
            "canScan": self.can_scan,
            "resetTime": self.reset_time,
        }


class InMemoryRateLimitStore:
    """Process-local client -> RateLimitState table"""

    def __init__(self):
        self._records: Dict[str, RateLimitState] = {}

    def get(self, client_id: str) -> Optional[RateLimitState]:
        return self._records.get(client_id)

    def set(self, client_id: str, state: RateLimitState):
        self._records[client_id] = state

    def delete(self, client_id: str):
        self._records.pop(client_id, None)

    def items(self) -> Iterator[Tuple[str, RateLimitState]]:
        return iter(list(self._records.items()))

    def __len__(self) -> int:
        return len(self._records)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DailyRateLimiter:
    """
    Per-client daily scan quota.

    Example:
        >>> limiter = DailyRateLimiter()
        >>> limiter.check("203.0.113.7").can_scan
        True
        >>> limiter.increment("203.0.113.7")
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        store: Optional[InMemoryRateLimitStore] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the rate limiter.

        Args:
            config: Quota configuration (uses defaults if None)
            store: Record store (a fresh in-memory store if None)
            clock: Returns the current timezone-aware UTC datetime
        """
        self.config = config or RateLimitConfig()
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.clock = clock
        self._last_sweep: Optional[date] = None

        self.logger = structlog.get_logger(__name__)

        self.logger.info(
            "rate_limiter_initialized",
            max_scans_per_day=self.config.max_scans_per_day,
            stale_after_days=self.config.stale_after_days,
        )

    def _today(self) -> date:
        return self.clock().astimezone(timezone.utc).date()

    def reset_time(self) -> str:
        """Next UTC midnight as an ISO 8601 string"""
        tomorrow = self._today() + timedelta(days=1)
        return datetime.combine(tomorrow, time(0, 0), tzinfo=timezone.utc).isoformat()

    def _current_count(self, client_id: str) -> int:
        state = self.store.get(client_id)
        if state is None or state.reset_date != self._today():
            return 0
        return state.count

    def check(self, client_id: str) -> RateLimitStatus:
        """
        Get the quota snapshot of a client.

        Args:
            client_id: Client identifier (usually the caller IP)

        Returns:
            RateLimitStatus for today
        """
        count = self._current_count(client_id)
        remaining = max(0, self.config.max_scans_per_day - count)

        return RateLimitStatus(
            scans_today=count,
            max_scans_per_day=self.config.max_scans_per_day,
            remaining=remaining,
            can_scan=remaining > 0,
            reset_time=self.reset_time(),
        )

    def increment(self, client_id: str):
        """Record one completed scan for a client"""
        today = self._today()
        state = self.store.get(client_id)

        if state is None or state.reset_date != today:
            self.store.set(client_id, RateLimitState(count=1, reset_date=today))
        else:
            state.count += 1

        self.logger.debug("rate_limit_incremented", client_id=client_id)

        if self._last_sweep != today:
            self._last_sweep = today
            self.evict_stale()

    def evict_stale(self, max_age_days: Optional[int] = None) -> int:
        """
        Remove records whose reset date is older than max_age_days.

        Args:
            max_age_days: Override for config.stale_after_days

        Returns:
            Number of evicted records
        """
        max_age = self.config.stale_after_days if max_age_days is None else max_age_days
        cutoff = self._today() - timedelta(days=max_age)

        evicted = 0
        for client_id, state in self.store.items():
            if state.reset_date < cutoff:
                self.store.delete(client_id)
                evicted += 1

        if evicted:
            self.logger.info("rate_limit_records_evicted", evicted=evicted, remaining=len(self.store))
        return evicted

    def get_stats(self) -> dict:
        """
        Get rate limiter statistics.

        Returns:
            Dictionary with tracked clients and configuration
        """
        return {
            "tracked_clients": len(self.store),
            "config": {
                "max_scans_per_day": self.config.max_scans_per_day,
                "stale_after_days": self.config.stale_after_days,
            },
        }
