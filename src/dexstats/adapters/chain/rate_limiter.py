import asyncio
import random
import time


class AsyncRateLimiter:
    """Spaces out requests so that at most `requests_per_sec` start per second."""

    def __init__(self, requests_per_sec: float) -> None:
        if requests_per_sec <= 0:
            raise ValueError("requests_per_sec must be > 0")
        self._min_interval = 1.0 / requests_per_sec
        self._next_ts = 0.0
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        # reserve a slot under the lock, sleep outside it
        async with self._lock:
            now = time.monotonic()
            start = max(now, self._next_ts)
            self._next_ts = start + self._min_interval
        sleep_for = start - now
        if sleep_for > 0:
            await asyncio.sleep(sleep_for)


def backoff_delay(attempt: int, base: float = 0.5, cap: float = 8.0) -> float:
    t = min(cap, base * (2 ** attempt))
    t *= 0.7 + random.random() * 0.6
    return t
