from .logging_middleware import RequestLoggingMiddleware
from .rate_limit import (
    FREE_QUERY_LIMIT_REPLY,
    RateLimiter,
    RateLimitExceeded,
    get_rate_limiter,
)

__all__ = [
    "FREE_QUERY_LIMIT_REPLY",
    "RateLimiter",
    "RateLimitExceeded",
    "RequestLoggingMiddleware",
    "get_rate_limiter",
]
