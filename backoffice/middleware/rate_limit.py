"""Rate limiting middleware for API protection"""
import hashlib

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from backoffice.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Priority:
    1. Bearer credential (hashed, never stored raw)
    2. IP address (for unauthenticated)
    """
    authorization = request.headers.get("authorization", "")
    if authorization.startswith("Bearer "):
        digest = hashlib.sha256(authorization[len("Bearer "):].encode()).hexdigest()[:16]
        return f"bearer:{digest}"

    return get_remote_address(request)


# Create limiter instance
limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
