"""
Rate limiting for incoming API requests.

This module provides a RateLimiter class that counts requests per client key
inside fixed time windows. It supports:
- Independent counters per client address
- Async/await interface
- Retry-after hints for rejected requests
- Named limiters grouped per application instance

Counters live in process memory and are lost on restart.
"""

import asyncio
import time
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimiter:
    """Fixed window rate limiter keyed by client"""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the rate limiter.

        Args:
            max_requests: Requests allowed per key within one window
            window_seconds: Window length in seconds
            clock: Monotonic time source (defaults to time.monotonic)
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._windows: Dict[str, _Window] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> Tuple[bool, int]:
        """
        Count one request for ``key``.

        Returns:
            Tuple of (allowed, retry_after_seconds). retry_after is 0 when
            the request is allowed.
        """
        async with self._lock:
            now = self._clock()
            window = self._windows.get(key)

            if window is None or now - window.started_at >= self.window_seconds:
                window = _Window(started_at=now)
                self._windows[key] = window
                self._prune(now)

            if window.count >= self.max_requests:
                retry_after = max(1, int(window.started_at + self.window_seconds - now + 0.999))
                logger.warning(f"Rate limit exceeded for {key}, retry in {retry_after}s")
                return False, retry_after

            window.count += 1
            return True, 0

    def _prune(self, now: float) -> None:
        expired = [
            k for k, w in self._windows.items()
            if now - w.started_at >= self.window_seconds
        ]
        for k in expired:
            del self._windows[k]


class RateLimitRegistry:
    """Named limiters belonging to one application instance."""

    def __init__(self, limiters: Optional[Dict[str, RateLimiter]] = None, enabled: bool = True):
        self._limiters: Dict[str, RateLimiter] = dict(limiters or {})
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings, clock: Optional[Callable[[], float]] = None) -> "RateLimitRegistry":
        return cls(
            {
                "default": RateLimiter(settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS, clock),
                "signup": RateLimiter(settings.SIGNUP_RATE_LIMIT, settings.SIGNUP_RATE_WINDOW_SECONDS, clock),
                "login": RateLimiter(settings.LOGIN_RATE_LIMIT, settings.LOGIN_RATE_WINDOW_SECONDS, clock),
                "password_reset": RateLimiter(
                    settings.PASSWORD_RESET_RATE_LIMIT,
                    settings.PASSWORD_RESET_RATE_WINDOW_SECONDS,
                    clock
                ),
            },
            enabled=settings.RATE_LIMIT_ENABLED
        )

    def get(self, name: str) -> RateLimiter:
        try:
            return self._limiters[name]
        except KeyError:
            raise KeyError(f"Unknown rate limiter: {name}") from None

    async def check(self, name: str, key: str) -> Tuple[bool, int]:
        if not self.enabled:
            return True, 0
        return await self.get(name).hit(key)
