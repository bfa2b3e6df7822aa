from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.enums import MealPlanStatus, GenerationMethod


class MealPlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    client_id: Optional[UUID] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    plan_content: Optional[Any] = None
    calories_range: Optional[str] = Field(default=None, max_length=50)
    duration_days: Optional[int] = Field(default=None, ge=1, le=90)
    status: MealPlanStatus = MealPlanStatus.DRAFT
    generation_method: GenerationMethod = GenerationMethod.MANUAL


class MealPlanUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    client_id: Optional[UUID] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    plan_content: Optional[Any] = None
    calories_range: Optional[str] = Field(default=None, max_length=50)
    duration_days: Optional[int] = Field(default=None, ge=1, le=90)
    status: Optional[MealPlanStatus] = None


class MealPlanResponse(BaseModel):
    id: UUID
    dietitian_id: UUID
    client_id: Optional[UUID] = None
    name: str
    description: Optional[str] = None
    plan_content: Optional[Any] = None
    calories_range: Optional[str] = None
    duration_days: Optional[int] = None
    status: MealPlanStatus
    generation_method: GenerationMethod
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GenerateMealPlanRequest(BaseModel):
    prompt: str = Field(..., min_length=10, max_length=2000)
    client_id: Optional[UUID] = Field(default=None, alias="clientId")
    duration: int = Field(default=7, ge=1, le=14)
    target_calories: int = Field(default=2000, ge=800, le=5000, alias="targetCalories")
    restrictions: List[str] = Field(default_factory=list, max_length=20)
    client_dietary_tags: List[str] = Field(
        default_factory=list, max_length=20, alias="clientDietaryTags"
    )

    model_config = {"populate_by_name": True}
