"""
Rate limiting for Glorda Backend
Uses in-memory storage with sliding window algorithm

Only the sensitive unauthenticated endpoints (OTP request/check, logins,
forgot-password) are limited, through the `rate_limit` dependency factory.
"""
import threading
import time
from collections import defaultdict
from typing import Dict, List, Tuple

from fastapi import Request, HTTPException, status


# Requests per window on sensitive auth endpoints
AUTH_MAX_REQUESTS = 5
AUTH_WINDOW_SECONDS = 60


class RateLimiter:
    """
    In-memory rate limiter using sliding window algorithm.

    State is per process; several workers each keep their own window.
    """

    def __init__(self):
        # {identifier: [timestamp, ...]}
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()
        self._last_cleanup = time.time()
        self._cleanup_interval = 60  # seconds

    def _cleanup_old_entries(self, now: float, window_seconds: int):
        """Drop identifiers whose requests all fell out of the window"""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        cutoff = now - window_seconds * 2
        for identifier in list(self._requests.keys()):
            self._requests[identifier] = [ts for ts in self._requests[identifier] if ts > cutoff]
            if not self._requests[identifier]:
                del self._requests[identifier]

        self._last_cleanup = now

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = 60
    ) -> Tuple[bool, int, int]:
        """
        Check if a request is allowed under the rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        with self._lock:
            now = time.time()
            self._cleanup_old_entries(now, window_seconds)

            window_start = now - window_seconds
            in_window = [ts for ts in self._requests[identifier] if ts > window_start]
            self._requests[identifier] = in_window

            if len(in_window) >= max_requests:
                retry_after = int(min(in_window) + window_seconds - now) + 1
                return False, 0, retry_after

            in_window.append(now)
            return True, max_requests - len(in_window), 0

    def reset(self):
        with self._lock:
            self._requests.clear()


# Global rate limiter instance
rate_limiter = RateLimiter()


def _client_ip(request: Request) -> str:
    """Get the client IP, considering proxies"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def rate_limit(max_requests: int = AUTH_MAX_REQUESTS, window_seconds: int = AUTH_WINDOW_SECONDS):
    """
    Dependency factory for per-endpoint rate limiting (per client IP).

    Usage:
        @router.post("/otp/request", dependencies=[Depends(rate_limit())])
        async def request_otp(...):
            ...
    """
    async def rate_limit_check(request: Request):
        identifier = f"endpoint:{request.url.path}:ip:{_client_ip(request)}"
        is_allowed, remaining, retry_after = rate_limiter.is_allowed(
            identifier=identifier,
            max_requests=max_requests,
            window_seconds=window_seconds
        )

        if not is_allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"محاولات كثيرة. حاول مرة أخرى بعد {retry_after} ثانية",
                headers={
                    "X-RateLimit-Limit": str(max_requests),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                }
            )

    return rate_limit_check
