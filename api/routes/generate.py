"""AI meal plan generation route"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from api.rate_limit import rate_limit_ai
from domain.models import Dietitian
from domain.schemas import GenerateMealPlanRequest
from services import MealPlanGenerationService

router = APIRouter(tags=["AI generation"])
logger = logging.getLogger("nutriflow.api.generate")


@router.post("/generate-meal-plan")
@rate_limit_ai
def generate_meal_plan(
    request: Request,
    payload: GenerateMealPlanRequest,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Generate a meal plan with the hosted LLM, within the plan's monthly quota."""
    return MealPlanGenerationService.generate(db, dietitian, payload)
