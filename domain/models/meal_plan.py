"""
Meal planning and AI generation models.
"""

from sqlalchemy import Column, Text, DateTime, ForeignKey, Integer, Boolean, JSON, Uuid
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow, enum_column
from domain.enums import MealPlanStatus, GenerationMethod


class MealPlan(Base):
    """Meal plan authored by a dietitian, optionally assigned to a client"""

    __tablename__ = "meal_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    name = Column(Text, nullable=False)
    description = Column(Text)
    plan_content = Column(JSON)
    calories_range = Column(Text)
    duration_days = Column(Integer)
    status = Column(
        enum_column(MealPlanStatus), nullable=False, default=MealPlanStatus.DRAFT
    )
    generation_method = Column(
        enum_column(GenerationMethod), nullable=False, default=GenerationMethod.MANUAL
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    client = relationship("Client")


class AIGeneration(Base):
    """Usage ledger for LLM generations (monthly quota accounting)"""

    __tablename__ = "ai_generations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="SET NULL"))
    generation_type = Column(Text, nullable=False, default="meal_plan")
    prompt_used = Column(Text)
    target_calories = Column(Integer)
    duration_days = Column(Integer)
    restrictions = Column(JSON, default=list)
    client_dietary_tags = Column(JSON, default=list)
    generation_successful = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
