"""Client IP extraction with trusted proxy support.

Proxy headers (CF-Connecting-IP, X-Forwarded-For, X-Real-IP) are only
honoured when ``TRUST_PROXY`` is enabled; otherwise a client could pick its
own rate-limit bucket by sending a forged header.
"""

import logging

from fastapi import Request

from app.config import settings

logger = logging.getLogger("nutriflow.api.client_ip")


def get_client_ip(request: Request) -> str:
    """Get client IP address from request.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address string ("unknown" when the transport has none)
    """
    if settings.trust_proxy:
        cf_ip = request.headers.get("CF-Connecting-IP")
        if cf_ip:
            return cf_ip.strip()

        # First IP in the chain is the original client
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"
