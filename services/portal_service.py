"""
Client portal read model and self-service writes.

Every function takes the client id resolved from the portal token; callers
never pass a client id taken from the request.
"""

from datetime import date
from typing import Any, Dict, Optional
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from domain.models import WeightEntry, as_utc
from repositories import (
    AppointmentRepository,
    ClientRepository,
    MealPlanRepository,
    MessageRepository,
    WeightEntryRepository,
)
from services.client_service import ClientService

logger = logging.getLogger("nutriflow.services.portal")

WEIGHT_HISTORY_LIMIT = 20
UPCOMING_APPOINTMENTS_LIMIT = 10
RECENT_MESSAGES_LIMIT = 10


def _num(value) -> Optional[float]:
    return float(value) if value is not None else None


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat() if hasattr(value, "tzinfo") else value.isoformat()


class PortalService:
    @staticmethod
    def get_session_client(db: Session, client_id: uuid.UUID) -> Dict[str, Any]:
        client = ClientRepository(db).get_by_id(client_id)
        if not client:
            raise NotFoundError("Client not found")
        return {"id": str(client.id), "name": client.name, "email": client.email}

    @staticmethod
    def get_portal_data(db: Session, client_id: uuid.UUID, today: Optional[date] = None) -> Dict[str, Any]:
        """Profile, current plan, weight history, upcoming appointments, recent messages."""
        client = ClientRepository(db).get_by_id(client_id)
        if not client:
            raise NotFoundError("Client non trouvé")

        today = today or date.today()
        weights = WeightEntryRepository(db).list_for_client(client_id, limit=WEIGHT_HISTORY_LIMIT)
        plan = MealPlanRepository(db).get_current_for_client(client_id)
        appointments = AppointmentRepository(db).list_upcoming_for_client(
            client_id, today, limit=UPCOMING_APPOINTMENTS_LIMIT
        )
        messages = MessageRepository(db).list_for_client(client_id, limit=RECENT_MESSAGES_LIMIT)

        return {
            "profile": {
                "name": client.name,
                "email": client.email,
                "phone": client.phone,
                "age": client.age,
                "height": _num(client.height),
                "currentWeight": _num(client.current_weight),
                "goalWeight": _num(client.goal_weight),
                "goal": client.goal,
                "planType": client.plan_type,
                "joinDate": _iso(client.join_date),
                "progress": ClientService.compute_progress(client, weights),
            },
            "currentPlan": (
                {
                    "id": str(plan.id),
                    "name": plan.name,
                    "description": plan.description,
                    "caloriesRange": plan.calories_range,
                    "duration": plan.duration_days,
                    "status": plan.status.value,
                    "content": plan.plan_content,
                }
                if plan
                else None
            ),
            "weightHistory": [
                {"date": _iso(w.recorded_date), "weight": _num(w.weight), "notes": w.notes}
                for w in weights
            ],
            "appointments": [
                {
                    "id": str(a.id),
                    "title": a.title,
                    "date": _iso(a.appointment_date),
                    "time": a.appointment_time.strftime("%H:%M:%S"),
                    "type": a.type.value,
                    "status": a.status.value,
                    "location": a.location,
                    "isVirtual": a.is_virtual,
                    "meetingLink": a.meeting_link,
                    "notes": a.notes,
                }
                for a in appointments
            ],
            "messages": [
                {
                    "id": str(m.id),
                    "content": m.content,
                    "sender": m.sender_type.value,
                    "timestamp": _iso(m.created_at),
                    "read": m.is_read,
                }
                for m in messages
            ],
        }

    @staticmethod
    def add_weight(
        db: Session, client_id: uuid.UUID, weight: float, notes: Optional[str] = None
    ) -> WeightEntry:
        """Record today's weight and make it the client's current weight."""
        client = ClientRepository(db).get_by_id(client_id)
        if not client:
            raise NotFoundError("Client non trouvé")
        entry = WeightEntry(
            client_id=client_id,
            weight=weight,
            recorded_date=date.today(),
            notes=notes or None,
        )
        try:
            db.add(entry)
            client.current_weight = weight
            db.commit()
            db.refresh(entry)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to record weight for client {client_id}")
            raise
        return entry
