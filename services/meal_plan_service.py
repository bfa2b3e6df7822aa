from typing import List, Optional
import logging
import uuid

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from domain.models import Dietitian, MealPlan
from domain.schemas import MealPlanCreate, MealPlanUpdate
from repositories import ClientRepository, MealPlanRepository
from services.subscription_service import SubscriptionService

logger = logging.getLogger("nutriflow.services.meal_plans")


class MealPlanService:
    @staticmethod
    def _check_client(db: Session, dietitian_id: uuid.UUID, client_id: Optional[uuid.UUID]):
        if client_id is not None and not ClientRepository(db).get_for_dietitian(dietitian_id, client_id):
            raise NotFoundError(f"Client not found: {client_id}")

    @staticmethod
    def list_plans(
        db: Session,
        dietitian_id: uuid.UUID,
        client_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
    ) -> List[MealPlan]:
        return MealPlanRepository(db).list_for_dietitian(dietitian_id, client_id=client_id, status=status)

    @staticmethod
    def get_plan(db: Session, dietitian_id: uuid.UUID, plan_id: uuid.UUID) -> MealPlan:
        plan = MealPlanRepository(db).get_for_dietitian(dietitian_id, plan_id)
        if not plan:
            raise NotFoundError(f"Meal plan not found: {plan_id}")
        return plan

    @staticmethod
    def create_plan(db: Session, dietitian: Dietitian, payload: MealPlanCreate) -> MealPlan:
        """
        Raises:
            ForbiddenError: plans created in the last 30 days reached the plan limit
            NotFoundError: client_id is not one of the dietitian's clients
        """
        SubscriptionService.ensure_within_limit(db, dietitian, "meal_plans")
        MealPlanService._check_client(db, dietitian.id, payload.client_id)
        plan = MealPlanRepository(db).create(
            MealPlan(dietitian_id=dietitian.id, **payload.model_dump())
        )
        logger.info(f"Created meal plan {plan.id} ({plan.generation_method.value})")
        return plan

    @staticmethod
    def update_plan(
        db: Session, dietitian_id: uuid.UUID, plan_id: uuid.UUID, payload: MealPlanUpdate
    ) -> MealPlan:
        plan = MealPlanService.get_plan(db, dietitian_id, plan_id)
        changes = payload.model_dump(exclude_unset=True)
        if "client_id" in changes:
            MealPlanService._check_client(db, dietitian_id, changes["client_id"])
        for key, value in changes.items():
            setattr(plan, key, value)
        return MealPlanRepository(db).update(plan)

    @staticmethod
    def delete_plan(db: Session, dietitian_id: uuid.UUID, plan_id: uuid.UUID) -> None:
        plan = MealPlanService.get_plan(db, dietitian_id, plan_id)
        MealPlanRepository(db).delete_entity(plan)
