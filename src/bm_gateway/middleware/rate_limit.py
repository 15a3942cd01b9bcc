"""Rate limiting middleware — fixed one-minute window in Redis.

Only mutating requests (POST/PUT/PATCH/DELETE) are counted.
  Key pattern: "ratelimit:{wallet_or_ip}:{minute}"
  Identity: X-Wallet-Public-Key header, else the client IP
  (first X-Forwarded-For hop when behind a reverse proxy).

Over the limit → HTTP 429, RateLimitError (9001), Retry-After header.
When Redis is unreachable the request is let through and a warning is
logged on bm.request.
Errors are rendered here directly: exceptions raised inside a
BaseHTTPMiddleware never reach the app's exception handlers.
"""

import logging
import time
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from src.bm_common.errors import RateLimitError
from src.bm_common.response import error_response

logger = logging.getLogger("bm.request")

_WINDOW_SECONDS = 60
_MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def _client_key(request: Request) -> str:
    wallet = request.headers.get("x-wallet-public-key")
    if wallet:
        return f"wallet:{wallet.strip()}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]],
        limit_per_minute: int,
    ) -> None:
        super().__init__(app)
        self._redis_factory = redis_factory
        self._limit = limit_per_minute

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method not in _MUTATING_METHODS:
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{_client_key(request)}:{window}"
        try:
            redis = await self._redis_factory()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError as exc:
            # fail open while Redis is unavailable
            logger.warning("rate limit skipped for %s: %s", key, exc)
            return await call_next(request)
        if count > self._limit:
            err = RateLimitError()
            retry_after = _WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS
            return JSONResponse(
                status_code=err.http_status,
                content=error_response(err.code, err.message, request).model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
