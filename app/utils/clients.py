"""Client identification helpers."""
from __future__ import annotations

from starlette.requests import Request

UNKNOWN_CLIENT = "unknown"


def first_forwarded_address(header: str | None) -> str | None:
    """Return the originating address from an ``X-Forwarded-For`` value."""

    if not header:
        return None
    first = header.split(",", 1)[0].strip()
    return first or None


def client_identifier(request: Request, trust_forwarded_for: bool = False) -> str:
    """Derive the rate-limit key for ``request`` from its network address."""

    if trust_forwarded_for:
        forwarded = first_forwarded_address(request.headers.get("x-forwarded-for"))
        if forwarded:
            return forwarded
    return request.client.host if request.client else UNKNOWN_CLIENT
