"""
Process-level infrastructure: logging and HTTP rate limiting.
"""

from flow_gateway.infrastructure.logging import setup_logging
from flow_gateway.infrastructure.rate_limiter import (
    limit_health,
    setup_rate_limiter,
)

__all__ = [
    "setup_logging",
    "setup_rate_limiter",
    "limit_health",
]
