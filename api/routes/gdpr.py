"""GDPR routes (dietitian side)"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from api.rate_limit import rate_limit_gdpr
from domain.models import Dietitian
from domain.schemas import GdprActionRequest
from services import GdprService

router = APIRouter(prefix="/gdpr", tags=["GDPR"])


@router.get("")
def list_gdpr_records(
    record_type: Optional[str] = Query(default=None, alias="type"),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Consents, export requests, retention policies or the current privacy policy."""
    return {"data": GdprService.list_records(db, dietitian.id, record_type)}


@router.post("")
@rate_limit_gdpr
def perform_gdpr_action(
    request: Request,
    payload: GdprActionRequest,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return GdprService.perform_action(
        db, dietitian.id, payload.action, payload.client_id, payload.data
    )
