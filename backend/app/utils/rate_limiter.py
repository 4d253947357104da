"""
In-memory fixed-window rate limiter, keyed by client IP and route scope.
Used to throttle OTP guessing on the confirm endpoint.
"""
import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import Request, HTTPException

from app.config import get_settings


class RateLimiter:
    """Fixed-window counter: {key: (window_start, count, window)}.

    Every `prune_every` hits, windows that have already closed are dropped.
    """

    def __init__(self, prune_every: int = 1000, clock: Callable[[], float] = time.time):
        self._store: Dict[str, Tuple[float, int, int]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.prune_every = prune_every
        self._hits = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def hit(self, key: str, requests: int, window: int) -> float:
        """Count one request; return 0 if allowed, else seconds until the window resets."""
        now = self._clock()
        with self._lock:
            self._hits += 1
            if self.prune_every and self._hits % self.prune_every == 0:
                self._prune(now)

            entry = self._store.get(key)
            if entry is None or now - entry[0] > window:
                self._store[key] = (now, 1, window)
                return 0

            window_start, count, _ = entry
            if count >= requests:
                return window - (now - window_start)

            self._store[key] = (window_start, count + 1, window)
            return 0

    def _prune(self, now: float) -> None:
        # caller holds self._lock
        closed = [key for key, (start, _, window) in self._store.items() if now - start > window]
        for key in closed:
            del self._store[key]

    def reset(self) -> None:
        with self._lock:
            self._store.clear()


limiter = RateLimiter()


def rate_limit(scope: str, requests: int | None = None, window: int | None = None):
    """
    FastAPI dependency factory.
    Example: Depends(rate_limit("payment-confirm"))
    """
    def dependency(request: Request):
        settings = get_settings()
        ip = request.client.host if request.client else "unknown"
        retry_after = limiter.hit(
            f"{scope}:{ip}",
            requests or settings.RATE_LIMIT_REQUESTS,
            window or settings.RATE_LIMIT_WINDOW_SECONDS,
        )
        if retry_after:
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Try again in {int(retry_after) + 1} seconds.",
            )
        return True

    return dependency
