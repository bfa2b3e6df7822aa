from datetime import date
from typing import List, Optional
import logging
import math
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from domain.models import Client, Dietitian, WeightEntry
from domain.schemas import ClientCreate, ClientUpdate
from repositories import ClientRepository, WeightEntryRepository
from services.subscription_service import SubscriptionService

logger = logging.getLogger("nutriflow.services.clients")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_progress(initial_weight: float, current_weight: float, goal_weight: float) -> int:
    """
    Percentage of the way from the initial weight to the goal, clamped to
    [0, 100]. A goal equal to the initial weight yields 0.
    """
    if goal_weight < initial_weight:
        total = initial_weight - goal_weight
        achieved = max(0.0, initial_weight - current_weight)
    elif goal_weight > initial_weight:
        total = goal_weight - initial_weight
        achieved = max(0.0, current_weight - initial_weight)
    else:
        return 0
    return min(100, _round_half_up(achieved / total * 100))


class ClientService:
    @staticmethod
    def list_clients(
        db: Session,
        dietitian_id: uuid.UUID,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Client]:
        return ClientRepository(db).list_for_dietitian(dietitian_id, status=status, search=search)

    @staticmethod
    def get_client(db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID) -> Client:
        client = ClientRepository(db).get_for_dietitian(dietitian_id, client_id)
        if not client:
            raise NotFoundError(f"Client not found: {client_id}")
        return client

    @staticmethod
    def create_client(db: Session, dietitian: Dietitian, payload: ClientCreate) -> Client:
        """
        Create a client for the dietitian.

        Raises:
            ForbiddenError: the plan's client limit is reached
        """
        SubscriptionService.ensure_within_limit(db, dietitian, "clients")

        data = payload.model_dump()
        if data.get("email"):
            data["email"] = data["email"].lower()
        if not data.get("join_date"):
            data["join_date"] = date.today()
        client = Client(dietitian_id=dietitian.id, **data)
        try:
            client = ClientRepository(db).create(client)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to create client for dietitian {dietitian.id}")
            raise
        logger.info(f"Created client {client.id} for dietitian {dietitian.id}")
        return client

    @staticmethod
    def update_client(
        db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID, payload: ClientUpdate
    ) -> Client:
        client = ClientService.get_client(db, dietitian_id, client_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            if key == "email" and value:
                value = value.lower()
            setattr(client, key, value)
        return ClientRepository(db).update(client)

    @staticmethod
    def delete_client(db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID) -> None:
        client = ClientService.get_client(db, dietitian_id, client_id)
        ClientRepository(db).delete_entity(client)
        logger.info(f"Deleted client {client_id}")

    @staticmethod
    def get_weight_history(
        db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID
    ) -> List[WeightEntry]:
        ClientService.get_client(db, dietitian_id, client_id)
        return WeightEntryRepository(db).list_for_client(client_id)

    @staticmethod
    def compute_progress(client: Client, weight_history: List[WeightEntry]) -> int:
        """Progress shown on the portal; falls back to the stored percentage."""
        stored = client.progress_percentage or 0
        if not weight_history or client.current_weight is None or client.goal_weight is None:
            return stored
        # weight_history is newest first
        initial = weight_history[-1].weight
        if initial is None:
            initial = client.current_weight
        return calculate_progress(
            float(initial), float(client.current_weight), float(client.goal_weight)
        )
