"""FastAPI application guarded by a per-client sliding-window rate limiter."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request

from app.config import Settings, get_settings
from app.logging_config import configure_logging
from app.middleware import RateLimitMiddleware
from app.rate_limit import RateLimiter
from app.utils import client_identifier

LOGGER = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> RateLimiter:
    """Provide the limiter instance owned by the application."""

    return request.app.state.rate_limiter


def create_app(
    settings: Optional[Settings] = None,
    limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """Build the application with one limiter shared by every request."""

    settings = settings or get_settings()
    if limiter is None:
        limiter = RateLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)

    app = FastAPI(title="Rate Limited API")
    app.state.settings = settings
    app.state.rate_limiter = limiter
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        trust_forwarded_for=settings.trust_forwarded_for,
    )

    @app.get("/")
    async def index() -> dict:
        """Trivial route sitting behind the limiter."""

        return {"message": "ok"}

    @app.get("/api/rate-limit")
    async def rate_limit_status(
        request: Request, rate_limiter: RateLimiter = Depends(get_rate_limiter)
    ) -> dict:
        """Report the caller's usage of the current window."""

        client_ip = client_identifier(request, settings.trust_forwarded_for)
        used = rate_limiter.count(client_ip)
        return {
            "limit": rate_limiter.limit,
            "windowSeconds": rate_limiter.window,
            "used": used,
            "remaining": max(0, rate_limiter.limit - used),
        }

    LOGGER.info(
        "rate limiter configured",
        extra={"limit": limiter.limit, "window": limiter.window},
    )
    return app


configure_logging(get_settings().log_level)
app = create_app()
