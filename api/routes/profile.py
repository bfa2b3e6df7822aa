"""Dietitian profile routes"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db, get_token_claims
from domain.models import Dietitian
from domain.schemas import (
    DietitianProfileCreate,
    DietitianProfileResponse,
    DietitianProfileUpdate,
)
from services import DietitianService

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=DietitianProfileResponse)
def get_profile(dietitian: Dietitian = Depends(get_current_dietitian)):
    return dietitian


@router.post(
    "", response_model=DietitianProfileResponse, status_code=status.HTTP_201_CREATED
)
def create_profile(
    payload: DietitianProfileCreate,
    claims: Dict[str, Any] = Depends(get_token_claims),
    db: Session = Depends(get_db),
):
    """Create the profile of a freshly signed-up user; starts the trial."""
    return DietitianService.register(db, claims, payload.first_name, payload.last_name)


@router.put("", response_model=DietitianProfileResponse)
def update_profile(
    payload: DietitianProfileUpdate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return DietitianService.update_profile(db, dietitian, **payload.model_dump(exclude_unset=True))
