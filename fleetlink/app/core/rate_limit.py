"""
Request rate limiting backed by Redis.

Fixed-window counter per client IP: the first hit in a window creates the
key with a TTL of one window, later hits increment it. Requests over the
limit are answered with 429 without reaching the API.
"""

import logging
import time
from typing import Optional, Tuple

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

import fleetlink.app.core.redis_client as redis_client_module
from fleetlink.app.core.config import settings

logger = logging.getLogger("fleetlink.rate_limit")

# Redis key prefix for request counters
RATE_LIMIT_PREFIX = "ratelimit:"


async def register_hit(
    client_key: str,
    limit: int,
    window_seconds: int,
    now: Optional[float] = None
) -> Tuple[bool, int]:
    """
    Count one request for client_key in the current window.

    Args:
        client_key: Client identifier (IP address)
        limit: Requests allowed per window
        window_seconds: Window length
        now: Unix time, defaults to the current time

    Returns:
        (allowed, remaining requests in this window)
    """
    if now is None:
        now = time.time()
    window = int(now // window_seconds)
    key = f"{RATE_LIMIT_PREFIX}{client_key}:{window}"

    count = int(await redis_client_module.redis_client.incr(key))
    if count == 1:
        await redis_client_module.redis_client.expire(key, window_seconds)

    return count <= limit, max(limit - count, 0)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies the rate limit to paths under `prefix`."""

    def __init__(self, app, prefix: str):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next) -> Response:
        if not settings.rate_limit_enabled or not request.url.path.startswith(self.prefix):
            return await call_next(request)

        client_key = request.client.host if request.client else "unknown"
        try:
            allowed, remaining = await register_hit(
                client_key,
                settings.rate_limit_requests,
                settings.rate_limit_window_seconds
            )
        except RedisError as e:
            # Fail open when Redis is unreachable
            logger.warning("Rate limiter unavailable, allowing request: %s", e)
            return await call_next(request)

        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s", client_key, request.url.path)
            return JSONResponse(
                status_code=429,
                content={
                    "error_code": "ERR_RATE_LIMITED",
                    "message": "Too many requests, please try again later.",
                    "details": {"limit": settings.rate_limit_requests}
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(settings.rate_limit_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
