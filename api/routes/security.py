"""Dietitian session management routes"""

from typing import Any, Dict
import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from api.client_ip import get_client_ip
from api.dependencies import get_current_dietitian, get_db, get_token_claims
from api.rate_limit import rate_limit_security
from domain.models import Dietitian
from domain.schemas import SessionActionRequest
from services import SecurityService

router = APIRouter(prefix="/security", tags=["Security"])


@router.get("/sessions")
@rate_limit_security
def list_sessions(
    request: Request,
    claims: Dict[str, Any] = Depends(get_token_claims),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return {
        "sessions": SecurityService.list_sessions(db, dietitian.id, claims.get("session_id"))
    }


@router.post("/sessions")
@rate_limit_security
def session_action(
    request: Request,
    payload: SessionActionRequest,
    claims: Dict[str, Any] = Depends(get_token_claims),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """``{"action": "revoke-all"}`` signs out every other device."""
    return SecurityService.perform_action(
        db, dietitian.id, payload.action, claims.get("session_id"), get_client_ip(request)
    )


@router.delete("/sessions/{session_id}")
@rate_limit_security
def revoke_session(
    request: Request,
    session_id: uuid.UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    SecurityService.revoke_session(db, dietitian.id, session_id, get_client_ip(request))
    return {"success": True}
