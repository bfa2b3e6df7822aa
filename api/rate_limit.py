"""Rate limiting using slowapi.

Fixed-window counters kept in process memory by default (``memory://``), so
limits are per instance. Limits by endpoint family:

- Portal login: 5 per 15 minutes per IP
- Session validation: 100/min
- Portal data and weight: 30/min
- Documents and photos: 20/min
- Messages: 10/min
- GDPR requests: 5/min
- AI generation: 20/hour per dietitian
- Session management: 20/min
- Everything else: the global default (100/min per IP)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.client_ip import get_client_ip
from app.config import settings

logger = logging.getLogger("nutriflow.api.rate_limit")
security_logger = logging.getLogger("security")

DEFAULT_RETRY_AFTER = 60


def dietitian_or_ip(request: Request) -> str:
    """Bucket per authenticated dietitian, falling back to the client IP.

    ``request.state.dietitian_id`` is set by ``get_current_dietitian``, which
    FastAPI resolves before the limit is checked.
    """
    dietitian_id = getattr(request.state, "dietitian_id", None)
    if dietitian_id:
        return f"dietitian:{dietitian_id}"
    return get_client_ip(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.rate_limit_default],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)


# Rate limit decorators for different endpoint families
rate_limit_login = limiter.limit(settings.rate_limit_login)
rate_limit_session = limiter.limit(settings.rate_limit_session)
rate_limit_data = limiter.limit(settings.rate_limit_data)
rate_limit_documents = limiter.limit(settings.rate_limit_documents)
rate_limit_messages = limiter.limit(settings.rate_limit_messages)
rate_limit_gdpr = limiter.limit(settings.rate_limit_gdpr)
rate_limit_ai = limiter.limit(settings.rate_limit_ai, key_func=dietitian_or_ip)
rate_limit_security = limiter.limit(settings.rate_limit_security)


def setup_rate_limiting(app):
    """Configure rate limiting on the FastAPI app.

    Call this in main.py after creating the app.
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    logger.info("Rate limiting %s", "enabled" if limiter.enabled else "disabled")


def _retry_after(exc: RateLimitExceeded) -> int:
    try:
        return int(exc.limit.limit.get_expiry())
    except AttributeError:
        return DEFAULT_RETRY_AFTER


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Log the event and return 429 with a Retry-After header."""
    security_logger.warning(
        {
            "event": "rate_limit_exceeded",
            "ip": get_client_ip(request),
            "path": request.url.path,
            "method": request.method,
            "limit": str(exc.detail),
        }
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests",
            "code": "RATE_LIMIT_EXCEEDED",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": str(_retry_after(exc))},
    )
