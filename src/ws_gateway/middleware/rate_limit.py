"""Fixed-window rate limiting middleware backed by Redis.

Rule: RATE_LIMIT_PER_MINUTE requests per client IP per minute on /api/v1/
paths. Health checks are never limited.

  count = INCR  ratelimit:{ip}:{window}
  EXPIRE 60 on the first hit of a window
  count > limit → 429 (RateLimitError, code 9001) with Retry-After

The client IP is the first X-Forwarded-For hop when present (reverse proxy
aware), else the socket peer. Limiting is off when the limit is 0 or no
Redis pool is attached to app.state. A Redis failure lets the request
through unlimited.
"""

import logging
import time

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.ws_common.errors import RateLimitError
from src.ws_common.response import error_response, request_id_of

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
LIMITED_PREFIX = "/api/v1/"


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limit_per_minute: int) -> None:
        super().__init__(app)
        self._limit = limit_per_minute

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        redis = getattr(request.app.state, "redis", None)
        if self._limit <= 0 or redis is None or not request.url.path.startswith(LIMITED_PREFIX):
            return await call_next(request)

        now = int(time.time())
        window = now // WINDOW_SECONDS
        ip = client_ip(request)
        key = f"ratelimit:{ip}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, WINDOW_SECONDS)
        except RedisError as err:
            logger.warning("Rate limit check skipped, Redis unavailable: %s", err)
            return await call_next(request)
        if count > self._limit:
            logger.warning("Rate limit exceeded: ip=%s count=%d", ip, count)
            exc = RateLimitError()
            resp = error_response(exc.code, exc.message, request_id=request_id_of(request))
            retry_after = WINDOW_SECONDS - (now % WINDOW_SECONDS)
            return JSONResponse(
                status_code=exc.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
