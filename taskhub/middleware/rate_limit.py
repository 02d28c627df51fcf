"""
TaskHub Backend — Rate Limiting Middleware
============================================

What:  Applies the injected RateLimiter to every request, keyed by client
       address, and reports the budget in standard headers.
How:   The app factory builds the limiter (memory or Redis store) and passes
       it in: app.add_middleware(RateLimitMiddleware, limiter=limiter).

Response headers (every limited request):
    RateLimit-Limit      requests allowed per window
    RateLimit-Remaining  requests left in the current window
    RateLimit-Reset      seconds until the window resets

Over the limit:
    HTTP 429, Retry-After: <seconds>,
    {"success": false, "message": "Too many requests, try again later."}

Excluded paths:
    /health and the API docs are never counted.

Store failure:
    If the store cannot be reached the request is let through unlimited and
    the failure is logged at ERROR.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from taskhub.dependencies import client_ip
from taskhub.exceptions import RateLimitExceededError
from taskhub.responses import error_response
from taskhub.services.rate_limiter import RateLimitDecision, RateLimiter, RateLimitStoreError

logger = logging.getLogger(__name__)


def rate_limit_headers(decision: RateLimitDecision) -> dict:
    return {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(decision.reset_after),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limiter in front of every route except the excluded ones."""

    EXCLUDED_PATHS = {"/health", "/openapi.json"}
    EXCLUDED_PREFIXES = ("/api-docs",)

    def __init__(self, app: ASGIApp, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    def is_excluded(self, path: str) -> bool:
        return path in self.EXCLUDED_PATHS or path.startswith(self.EXCLUDED_PREFIXES)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self.is_excluded(request.url.path):
            return await call_next(request)

        key = client_ip(request)
        try:
            decision = await self.limiter.check(key)
        except RateLimitStoreError as e:
            logger.error("Rate limiter store unavailable, not limiting %s: %s", key, e)
            return await call_next(request)

        headers = rate_limit_headers(decision)

        if not decision.allowed:
            exc = RateLimitExceededError(retry_after=decision.reset_after)
            logger.warning(
                "Rate limit exceeded for %s: limit %d per %ds",
                key,
                decision.limit,
                self.limiter.window_seconds,
            )
            headers["Retry-After"] = str(exc.retry_after)
            return error_response(exc.status_code, exc.message, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
