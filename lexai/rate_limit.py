# lexai/rate_limit.py

import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from fastapi import Depends, Request

from .auth import get_current_user
from .errors import RateLimitError
from .models import User
from lexai.config import settings
from lexai.utils.logging import logger


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at)),
        }


class RateLimitStore(ABC):
    """Counter table keyed by user id. A shared backend replaces the in-memory one across processes."""

    @abstractmethod
    def increment(self, key: int, now: float, window: float) -> Tuple[int, float]:
        """Count one request in the current window; returns (count, window_reset_at)."""

    @abstractmethod
    def reset(self) -> None: ...


class MemoryRateLimitStore(RateLimitStore):
    def __init__(self):
        self._windows: Dict[int, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def increment(self, key: int, now: float, window: float) -> Tuple[int, float]:
        # read, reset and increment happen under one lock acquisition
        with self._lock:
            count, reset_at = self._windows.get(key, (0, 0.0))
            if now > reset_at:
                count, reset_at = 0, now + window
            count += 1
            self._windows[key] = (count, reset_at)
            return count, reset_at

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


class RateLimiter:
    """Fixed-window per-user request counter."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        store: RateLimitStore = None,
        clock: Callable[[], float] = time.time,
    ):
        self.limit = limit
        self.window = window_seconds
        self.store = store or MemoryRateLimitStore()
        self._clock = clock

    def hit(self, user_id: int) -> RateLimitStatus:
        now = self._clock()
        count, reset_at = self.store.increment(user_id, now, self.window)
        allowed = count <= self.limit
        retry_after = 0 if allowed else max(1, math.ceil(reset_at - now))
        if not allowed:
            logger.warning(
                f"Rate limit exceeded for user_id={user_id}: count={count}, "
                f"retry_after={retry_after}s"
            )
        return RateLimitStatus(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_at=reset_at,
            retry_after=retry_after,
        )


rate_limiter = RateLimiter(settings.rate_limit, settings.rate_limit_window)


def get_rate_limiter() -> RateLimiter:
    return rate_limiter


def rate_limited_user(
    request: Request,
    user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> User:
    """Authenticated user dependency that also counts the request against the user's window."""
    status = limiter.hit(user.id)
    # picked up by the response-header middleware in main.py
    request.state.rate_limit = status
    if not status.allowed:
        raise RateLimitError(status.retry_after)
    return user
