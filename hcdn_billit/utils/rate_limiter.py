"""
Token bucket rate limiter.

Shared by every publish worker of a BillitClient, so the configured rate caps
the whole pool rather than each worker.

Responsibility: Pace requests sent to billit
"""

import asyncio
import time


class RateLimiter:
    """
    Token bucket: refills at `rate` tokens per second up to `burst`.

    Example:
        limiter = RateLimiter(rate=2.0, burst=5)
        await limiter.acquire()
    """

    def __init__(self, rate: float, burst: int = 1):
        if rate <= 0:
            raise ValueError("Rate must be positive")
        if burst < 1:
            raise ValueError("Burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self._tokens = float(burst)
        self._refilled_at = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(self.burst, self._tokens + (now - self._refilled_at) * self.rate)
        self._refilled_at = now

    async def acquire(self) -> None:
        """Take one token, sleeping until the bucket has one"""
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                await asyncio.sleep((1 - self._tokens) / self.rate)
                self._refill()
            self._tokens -= 1
