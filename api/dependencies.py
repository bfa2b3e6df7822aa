"""
API dependencies for dependency injection
"""

from typing import Any, Dict, Generator, Optional
import logging
import uuid

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from api.client_ip import get_client_ip
from app.config import settings
from app.exceptions import UnauthorizedError
from domain.models import Dietitian, get_db_session
from services import DietitianService, SecurityService
from services.client_auth_service import validate_client_session

logger = logging.getLogger("nutriflow.api.dependencies")
security_logger = logging.getLogger("security")

bearer_scheme = HTTPBearer(auto_error=False)

CLIENT_TOKEN_REQUIRED = "Token d'authentification requis"
CLIENT_SESSION_INVALID = "Session client invalide"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            # Use db session here
            pass
    """
    yield from get_db_session()


def _auth_failure(request: Request, event: str, **extra) -> None:
    security_logger.warning(
        {
            "event": event,
            "ip": get_client_ip(request),
            "path": request.url.path,
            **extra,
        }
    )


# ============================================================================
# Dietitian (hosted auth) session
# ============================================================================


def get_token_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    """Verified hosted-auth claims from the Bearer header or the session cookie."""
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(settings.dietitian_session_cookie)
    if not token:
        _auth_failure(request, "dietitian_token_missing")
        raise UnauthorizedError()
    try:
        return DietitianService.decode_access_token(token)
    except UnauthorizedError as exc:
        _auth_failure(request, "dietitian_token_rejected", code=exc.code)
        raise


def get_current_dietitian(
    request: Request,
    claims: Dict[str, Any] = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> Dietitian:
    """
    The dietitian owning the session; also exposed on ``request.state`` for
    rate limiting. Tokens from a revoked session are refused.
    """
    dietitian = DietitianService.get_by_claims(db, claims)
    try:
        SecurityService.track_session(
            db, dietitian, claims, get_client_ip(request), request.headers.get("user-agent")
        )
    except UnauthorizedError as exc:
        _auth_failure(request, "dietitian_session_revoked", code=exc.code)
        raise
    request.state.dietitian_id = str(dietitian.id)
    return dietitian


# ============================================================================
# Client portal session
# ============================================================================


def _client_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if header is not None:
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()
    return request.cookies.get(settings.client_session_cookie)


def get_current_client_id(request: Request, db: Session = Depends(get_db)) -> uuid.UUID:
    """
    Client id of the portal session.

    Raises:
        UnauthorizedError: no token, malformed header, or invalid session
    """
    token = _client_token(request)
    if not token:
        _auth_failure(request, "client_token_missing")
        raise UnauthorizedError(CLIENT_TOKEN_REQUIRED)

    client_id = validate_client_session(db, token)
    if client_id is None:
        _auth_failure(request, "client_session_invalid")
        raise UnauthorizedError(CLIENT_SESSION_INVALID)

    request.state.client_id = str(client_id)
    return client_id
