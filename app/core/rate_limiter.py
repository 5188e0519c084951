"""
app/core/rate_limiter.py — Fixed-window rate limiting
Protected operations (generate, save, fetch, feedback) go through an
explicitly constructed RateLimitStore. Catalogue read endpoints use the
shared slowapi limiter with plain "N/period" strings.

Fixed windows share one reset boundary per identifier, so a full burst at
the end of one window followed by a full burst at the start of the next
lets through up to 2x max_requests across the boundary.
"""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from fastapi import Request
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import get_settings
from app.core import logging as app_logging
from app.core.errors import RateLimitExceededError

settings = get_settings()

# Single shared slowapi limiter — imported by main.py and the catalogue routes
limiter = Limiter(key_func=get_remote_address)

UNKNOWN_CLIENT = "unknown"


@dataclass(frozen=True)
class RateLimitConfig:
    window_ms: int
    max_requests: int

    def __post_init__(self) -> None:
        if self.window_ms <= 0 or self.max_requests <= 0:
            raise ValueError(
                f"window_ms and max_requests must be positive, got "
                f"{self.window_ms}/{self.max_requests}"
            )


@dataclass
class RateLimitEntry:
    count: int
    window_end: float  # epoch milliseconds


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    remaining: int
    reset_time: float  # epoch milliseconds


# ── Policies per protected operation ──────────────────────────────────────────
RATE_LIMITS: dict[str, RateLimitConfig] = {
    name: RateLimitConfig(**policy)
    for name, policy in settings.rate_limits.items()
}


def _wall_clock_ms() -> float:
    return time.time() * 1000


# ──────────────────────────────────────────────────────────────────────────────
# In-memory store
# ──────────────────────────────────────────────────────────────────────────────

class RateLimitStore:
    """
    Per-identifier fixed-window counters.

    The store is the only owner of its entries. A single lock serializes
    check-then-increment and the sweeper's deletes, so concurrent requests
    from FastAPI's thread pool can never admit more than max_requests in a
    window.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        self._clock = clock or _wall_clock_ms
        self._sweep_interval = sweep_interval_seconds
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def now(self) -> float:
        return self._clock()

    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Admit or reject one request for identifier under config."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)

            if entry is None or entry.window_end < now:
                # New window — replaces any expired entry, never merges
                window_end = now + config.window_ms
                self._entries[identifier] = RateLimitEntry(count=1, window_end=window_end)
                return RateLimitResult(
                    success=True,
                    remaining=config.max_requests - 1,
                    reset_time=window_end,
                )

            if entry.count >= config.max_requests:
                return RateLimitResult(
                    success=False,
                    remaining=0,
                    reset_time=entry.window_end,
                )

            entry.count += 1
            return RateLimitResult(
                success=True,
                remaining=config.max_requests - entry.count,
                reset_time=entry.window_end,
            )

    def sweep(self) -> int:
        """
        Delete entries whose window has passed. Expiry is re-checked under
        the lock, so an entry recreated after the scan is never removed.
        """
        with self._lock:
            now = self._clock()
            candidates = [
                key for key, entry in self._entries.items()
                if entry.window_end < now
            ]
        removed = 0
        for key in candidates:
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and entry.window_end < self._clock():
                    del self._entries[key]
                    removed += 1
        if removed:
            logger.debug(f"Rate limit sweep removed {removed} expired entries.")
        return removed

    # ── Sweeper lifecycle ─────────────────────────────────────────────────────

    def _sweep_worker(self) -> None:
        while not self._stop_event.wait(self._sweep_interval):
            try:
                self.sweep()
            except Exception as exc:
                logger.warning(f"Rate limit sweep failed (non-fatal): {exc}")

    def start(self) -> None:
        """Launch the periodic sweep daemon thread."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_worker,
            daemon=True,
            name="rate-limit-sweeper",
        )
        self._sweeper.start()
        logger.info(f"Rate limit sweeper started. Interval {self._sweep_interval}s.")

    def stop(self) -> None:
        """Stop the sweeper. Safe to call more than once."""
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=self._sweep_interval + 1)
            self._sweeper = None


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

def get_client_ip(headers: Mapping[str, str]) -> str:
    """
    Best-effort client address. x-forwarded-for (first hop, trimmed) wins
    over x-real-ip; clients with neither share the "unknown" bucket.
    """
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT


def retry_after_seconds(result: RateLimitResult, now_ms: float) -> int:
    """Whole seconds until reset_time, rounded up."""
    return max(0, math.ceil((result.reset_time - now_ms) / 1000))


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI integration
# ──────────────────────────────────────────────────────────────────────────────

def get_rate_limit_store(request: Request) -> RateLimitStore:
    """FastAPI dependency: the process-wide store created in main.py."""
    return request.app.state.rate_limit_store


def enforce_rate_limit(
    request: Request,
    operation: str,
    store: RateLimitStore,
) -> RateLimitResult:
    """
    Check the "<operation>:<client-ip>" bucket. Raises RateLimitExceededError
    (429, Retry-After, X-RateLimit-Remaining: 0) when the quota is spent.
    """
    identifier = f"{operation}:{get_client_ip(request.headers)}"
    result = store.check(identifier, RATE_LIMITS[operation])
    if not result.success:
        retry_after = retry_after_seconds(result, store.now())
        app_logging.log_rate_limited(operation, identifier, retry_after)
        raise RateLimitExceededError(retry_after)
    return result
