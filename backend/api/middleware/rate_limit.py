"""
Rate limiting with slowapi.

Limits are keyed on the client IP.  Behind a reverse proxy the first public
address in X-Forwarded-For (or X-Real-IP) is used; private and loopback
values in those headers are ignored so they cannot be spoofed to share or
dodge a bucket.

Rate Limits:
- Login: 5 attempts per minute
- Newsletter subscribe: 10 per hour
- Default: 100 requests per minute
"""

import ipaddress
import logging
import re

from starlette.requests import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Quick reject before parsing
_IP_LIKE = re.compile(r"^[\d.:a-fA-F]+$")


def _public_ip(value: str) -> str | None:
    """Return ``value`` if it is a valid, public IP address."""
    value = value.strip()
    if not _IP_LIKE.match(value):
        return None
    try:
        addr = ipaddress.ip_address(value)
    except ValueError:
        return None
    if addr.is_private or addr.is_loopback or addr.is_link_local:
        return None
    return value


def get_client_ip(request: Request) -> str:
    """Client IP from proxy headers, falling back to the socket address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        candidate = _public_ip(forwarded.split(",")[0])
        if candidate:
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        candidate = _public_ip(real_ip)
        if candidate:
            return candidate
    return get_remote_address(request)


# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "login": "5/minute",
    "subscribe": "10/hour",
    "default": "100/minute",
}

if settings.rate_limit_storage_uri.startswith("memory://") and settings.is_production:
    logger.warning(
        "Rate limiter using in-memory storage; limits are per worker process"
    )

limiter = Limiter(
    key_func=get_client_ip,
    storage_uri=settings.rate_limit_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """Rate limit string for ``endpoint``, or the default."""
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
