"""Fixed-window rate limiting keyed by client and route."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from photo_restore.domain.errors import RateLimited


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_seconds: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a single rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass
class FixedWindowRateLimiter:
    """In-process fixed-window counter.

    Windows live in this instance only, so separate processes count
    separately. Expired windows are swept at most once per
    ``sweep_interval_seconds``.
    """

    clock: Callable[[], float] = time.time
    sweep_interval_seconds: float = 60.0
    _windows: dict[str, _Window] = field(default_factory=dict)
    _next_sweep_at: float = 0.0

    def check(self, key: str, rule: RateLimitRule) -> RateLimitDecision:
        """Count a request against the key and report whether it is allowed."""
        now = self.clock()
        self._sweep(now)
        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            window = _Window(count=0, reset_at=now + rule.window_seconds)
            self._windows[key] = window
        window.count += 1
        return RateLimitDecision(
            allowed=window.count <= rule.limit,
            limit=rule.limit,
            remaining=max(0, rule.limit - window.count),
            reset_at=window.reset_at,
        )

    def enforce(self, key: str, rule: RateLimitRule) -> RateLimitDecision:
        """Check the key and raise RateLimited when the window is exhausted."""
        decision = self.check(key, rule)
        if not decision.allowed:
            raise RateLimited(limit=decision.limit, reset_at=decision.reset_at)
        return decision

    def tracked_keys(self) -> set[str]:
        return set(self._windows)

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep_at:
            return
        self._next_sweep_at = now + self.sweep_interval_seconds
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
