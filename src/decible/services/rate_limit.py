"""
Per-user generation rate limiting.

Each subscription tier allows a number of generations per minute and per
hour. Both windows slide: a request is admitted when fewer than ``limit``
admitted requests fall inside the last 60 (or 3600) seconds. Rejected
requests do not count against either window.

    tier      per minute  per hour
    free          3          30
    starter       5         100
    creator      10         200
    pro          15         400
    advanced     20         600

Unknown tiers get the free limits. State is kept in process memory, one
limiter per application instance.

Example:
    >>> limiter = RateLimiter()
    >>> limiter.hit("user-1", "free").remaining
    2
"""
from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Tuple

from decible.core.logging import debug, get_logger, warn
from decible.services.errors import RateLimitedError

_LOG = get_logger("decible.rate_limit")

MINUTE = 60
HOUR = 60 * 60


@dataclass(frozen=True)
class TierLimits:
    per_minute: int
    per_hour: int


TIER_RATE_LIMITS: Dict[str, TierLimits] = {
    "free": TierLimits(per_minute=3, per_hour=30),
    "starter": TierLimits(per_minute=5, per_hour=100),
    "creator": TierLimits(per_minute=10, per_hour=200),
    "pro": TierLimits(per_minute=15, per_hour=400),
    "advanced": TierLimits(per_minute=20, per_hour=600),
}


def limits_for(tier: str) -> TierLimits:
    return TIER_RATE_LIMITS.get(tier, TIER_RATE_LIMITS["free"])


@dataclass(frozen=True)
class RateLimitResult:
    """State of the minute window after an admitted request. ``reset_at`` is epoch ms."""
    limit: int
    remaining: int
    reset_at: int


class RateLimiter:
    """
    Thread-safe sliding-window limiter keyed by user id.

    Args:
        clock: Returns the current time in seconds (tests inject a fake).
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[Tuple[str, int], Deque[float]] = {}

    def _window(self, user_id: str, seconds: int, now: float) -> Deque[float]:
        stamps = self._windows.setdefault((user_id, seconds), deque())
        while stamps and stamps[0] <= now - seconds:
            stamps.popleft()
        return stamps

    def hit(self, user_id: str, tier: str) -> RateLimitResult:
        """
        Admit one generation for ``user_id`` or raise.

        Raises:
            RateLimitedError: The minute or the hour window is full.
        """
        limits = limits_for(tier)
        now = self._clock()
        with self._lock:
            windows = [
                (self._window(user_id, MINUTE, now), limits.per_minute, MINUTE),
                (self._window(user_id, HOUR, now), limits.per_hour, HOUR),
            ]
            for stamps, limit, seconds in windows:
                if len(stamps) >= limit:
                    reset = stamps[0] + seconds
                    retry_after = max(1, math.ceil(reset - now))
                    warn(_LOG, "rate_limited", user=user_id, tier=tier, window=seconds, limit=limit)
                    raise RateLimitedError(limit, 0, int(reset * 1000), retry_after)
            for stamps, _, _ in windows:
                stamps.append(now)
            minute = windows[0][0]
            remaining = limits.per_minute - len(minute)
            reset_at = int((minute[0] + MINUTE) * 1000)

        debug(_LOG, "rate_ok", user=user_id, tier=tier, remaining=remaining)
        return RateLimitResult(limit=limits.per_minute, remaining=remaining, reset_at=reset_at)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
