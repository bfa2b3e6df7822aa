"""Meal plan routes"""

from typing import List, Optional
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from domain.enums import MealPlanStatus
from domain.models import Dietitian
from domain.schemas import MealPlanCreate, MealPlanResponse, MealPlanUpdate
from services import MealPlanService

router = APIRouter(prefix="/meal-plans", tags=["Meal plans"])
logger = logging.getLogger("nutriflow.api.meal_plans")


@router.get("", response_model=List[MealPlanResponse])
def list_meal_plans(
    client_id: Optional[UUID] = Query(default=None),
    status_filter: Optional[MealPlanStatus] = Query(default=None, alias="status"),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return MealPlanService.list_plans(
        db,
        dietitian.id,
        client_id=client_id,
        status=status_filter.value if status_filter else None,
    )


@router.post("", response_model=MealPlanResponse, status_code=status.HTTP_201_CREATED)
def create_meal_plan(
    payload: MealPlanCreate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Create a plan; counts against the plan's 30-day meal plan limit."""
    return MealPlanService.create_plan(db, dietitian, payload)


@router.get("/{plan_id}", response_model=MealPlanResponse)
def get_meal_plan(
    plan_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return MealPlanService.get_plan(db, dietitian.id, plan_id)


@router.put("/{plan_id}", response_model=MealPlanResponse)
def update_meal_plan(
    plan_id: UUID,
    payload: MealPlanUpdate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return MealPlanService.update_plan(db, dietitian.id, plan_id, payload)


@router.delete("/{plan_id}")
def delete_meal_plan(
    plan_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    MealPlanService.delete_plan(db, dietitian.id, plan_id)
    return {"success": True, "deleted": str(plan_id)}
