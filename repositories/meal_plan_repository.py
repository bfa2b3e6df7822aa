"""
Meal plan Repository - meal plans and AI generation usage ledger
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import TenantRepository
from domain.models import MealPlan, AIGeneration
from domain.enums import MealPlanStatus


class MealPlanRepository(TenantRepository[MealPlan]):
    """Repository for meal plan data access"""

    def __init__(self, db: Session):
        super().__init__(db, MealPlan)

    def list_for_dietitian(
        self,
        dietitian_id: UUID,
        client_id: Optional[UUID] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[MealPlan]:
        query = self.query_for_dietitian(dietitian_id)
        if client_id:
            query = query.filter(MealPlan.client_id == client_id)
        if status:
            query = query.filter(MealPlan.status == status)
        return query.order_by(MealPlan.created_at.desc()).offset(skip).limit(limit).all()

    def get_current_for_client(self, client_id: UUID) -> Optional[MealPlan]:
        """Most recent active plan assigned to the client"""
        return (
            self.db.query(MealPlan)
            .filter(MealPlan.client_id == client_id, MealPlan.status == MealPlanStatus.ACTIVE)
            .order_by(MealPlan.created_at.desc())
            .first()
        )

    def list_for_client(self, client_id: UUID) -> List[MealPlan]:
        return (
            self.db.query(MealPlan)
            .filter(MealPlan.client_id == client_id)
            .order_by(MealPlan.created_at.desc())
            .all()
        )

    def count_created_since(self, dietitian_id: UUID, since: datetime) -> int:
        return (
            self.query_for_dietitian(dietitian_id)
            .filter(MealPlan.created_at >= since)
            .count()
        )


class AIGenerationRepository(TenantRepository[AIGeneration]):
    def __init__(self, db: Session):
        super().__init__(db, AIGeneration)

    def count_successful_since(self, dietitian_id: UUID, since: datetime) -> int:
        return (
            self.query_for_dietitian(dietitian_id)
            .filter(
                AIGeneration.generation_successful.is_(True),
                AIGeneration.created_at >= since,
            )
            .count()
        )
