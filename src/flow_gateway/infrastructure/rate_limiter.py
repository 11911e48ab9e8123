"""
Rate limiting for the gateway's HTTP endpoints using SlowAPI.
"""

from typing import Callable

from fastapi import FastAPI, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address


def _get_identifier(request: Request) -> str:
    """Key requests by the first X-Forwarded-For hop, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def setup_rate_limiter(app: FastAPI) -> Limiter:
    """
    Attach a limiter to a FastAPI application.

    Each app gets its own limiter so route limits and counters never leak
    between app instances.

    Args:
        app: FastAPI application instance

    Returns:
        The limiter used to decorate the app's routes
    """
    limiter = Limiter(key_func=_get_identifier)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    return limiter


def limit_health(limiter: Limiter, limit: str) -> Callable[[Callable], Callable]:
    """Rate limit decorator for the health endpoint (RATE_LIMIT_HEALTH)."""
    return limiter.limit(limit)
