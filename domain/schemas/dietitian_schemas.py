"""Dietitian profile schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.enums import SubscriptionStatus


class DietitianProfileCreate(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class DietitianProfileUpdate(DietitianProfileCreate):
    pass


class DietitianProfileResponse(BaseModel):
    id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    subscription_status: SubscriptionStatus
    subscription_plan: str
    trial_ends_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
