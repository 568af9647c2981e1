"""HTTP middleware that enforces the per-client rate limit."""
from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.rate_limit import RateLimiter
from app.utils import client_identifier

LOGGER = logging.getLogger(__name__)

RATE_LIMIT_ERROR = "rate limit exceeded"


def retry_after_header(window_seconds: float) -> str:
    """Render the window length as a whole-second ``Retry-After`` value."""

    return str(max(1, int(round(window_seconds))))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over the limit with ``429`` before they reach a route."""

    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        trust_forwarded_for: bool = False,
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.trust_forwarded_for = trust_forwarded_for
        self.retry_after = retry_after_header(limiter.window)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client_ip = client_identifier(request, self.trust_forwarded_for)
        if not self.limiter.allow(client_ip):
            LOGGER.warning(
                "rate limit exceeded",
                extra={"client_ip": client_ip, "path": request.url.path},
            )
            return JSONResponse(
                {"error": RATE_LIMIT_ERROR},
                status_code=429,
                headers={"Retry-After": self.retry_after},
            )
        try:
            response = await call_next(request)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Unhandled exception", extra={"client_ip": client_ip})
            raise exc
        return response
