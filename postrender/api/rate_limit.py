"""
Rate Limiting
=============

In-memory sliding-window rate limiter keyed by client address.
"""

from typing import Callable, Deque, Dict, Optional
from collections import deque
from dataclasses import dataclass
import time

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int


class SlidingWindowRateLimiter:
    """Allow at most `limit` requests per client within `window` seconds."""

    def __init__(
        self, limit: int = 100, window: int = 900, clock: Callable[[], float] = time.monotonic
    ):
        self.limit = limit
        self.window = window
        self.clock = clock
        self.requests: Dict[str, Deque[float]] = {}
        self._last_sweep: Optional[float] = None

    def check(self, client_id: str) -> RateLimitDecision:
        """Record a request for the client if it is within the limit."""
        now = self.clock()
        self._sweep(now)

        history = self.requests.pop(client_id, None) or deque()
        self._prune(history, now)

        allowed = len(history) < self.limit
        if allowed:
            history.append(now)

        # Only clients with requests inside the window are tracked
        if history:
            self.requests[client_id] = history

        reset_after = int(self.window - (now - history[0])) + 1 if history else self.window
        return RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=max(self.limit - len(history), 0),
            reset_after=reset_after,
        )

    def _prune(self, history: Deque[float], now: float) -> None:
        """Drop requests outside the window."""
        while history and now - history[0] >= self.window:
            history.popleft()

    def _sweep(self, now: float) -> None:
        """Forget every client whose requests have all expired, at most once per window."""
        if self._last_sweep is not None and now - self._last_sweep < self.window:
            return
        self._last_sweep = now

        expired = [
            client_id
            for client_id, history in self.requests.items()
            if not history or now - history[-1] >= self.window
        ]
        for client_id in expired:
            del self.requests[client_id]

    def reset(self, client_id: Optional[str] = None) -> None:
        """Forget one client, or every client."""
        if client_id is None:
            self.requests.clear()
        else:
            self.requests.pop(client_id, None)
