"""
Rate limiting using slowapi.

Limits are keyed on the client IP. Sign-in and sign-up carry tighter limits
than the global default to slow down credential stuffing and bulk account
creation.

Rate Limits:
- Sign-in: 5 attempts per minute
- Sign-up: 3 attempts per minute
- Default: 100 requests per minute
"""

import ipaddress
import logging
from typing import Optional

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Proxy headers consulted in order; X-Forwarded-For may hold a chain
_PROXY_HEADERS = ("x-forwarded-for", "x-real-ip")


def _public_ip(value: str) -> Optional[str]:
    """Normalise *value* to an address, or None if it is unusable.

    Private, loopback and link-local addresses are rejected: a client can
    send ``X-Forwarded-For: 127.0.0.1`` to land in a shared bucket.
    """
    try:
        addr = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    if addr.is_private or addr.is_loopback or addr.is_link_local:
        return None
    return str(addr)


def get_real_ip(request: Request) -> str:
    """Client IP from proxy headers, falling back to the peer address.

    Used both as the rate-limit key and as the IP recorded on activity rows
    and ``users.last_ip``.
    """
    for header in _PROXY_HEADERS:
        raw = request.headers.get(header)
        if not raw:
            continue
        ip = _public_ip(raw.split(",")[0])
        if ip:
            return ip
    return get_remote_address(request)


# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "sign_in": "5/minute",
    "sign_up": "3/minute",
    "default": "100/minute",
}

if settings.rate_limit_storage_uri.startswith("memory://"):
    logger.warning(
        "Rate limiter using in-memory storage, limits are per process"
    )

limiter = Limiter(
    key_func=get_real_ip,
    storage_uri=settings.rate_limit_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """
    Get the rate limit for an endpoint.

    Example:
        >>> get_rate_limit("sign_in")
        "5/minute"
        >>> get_rate_limit("unknown")
        "100/minute"
    """
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
