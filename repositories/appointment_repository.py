from datetime import date
from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import TenantRepository
from domain.models import Appointment


class AppointmentRepository(TenantRepository[Appointment]):
    """Repository for appointment data access"""

    def __init__(self, db: Session):
        super().__init__(db, Appointment)

    def list_for_dietitian(
        self,
        dietitian_id: UUID,
        client_id: Optional[UUID] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Appointment]:
        query = self.query_for_dietitian(dietitian_id)
        if client_id:
            query = query.filter(Appointment.client_id == client_id)
        if status:
            query = query.filter(Appointment.status == status)
        if date_from:
            query = query.filter(Appointment.appointment_date >= date_from)
        if date_to:
            query = query.filter(Appointment.appointment_date <= date_to)
        return query.order_by(
            Appointment.appointment_date, Appointment.appointment_time
        ).all()

    def list_upcoming_for_client(
        self, client_id: UUID, today: date, limit: int = 10
    ) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.client_id == client_id, Appointment.appointment_date >= today)
            .order_by(Appointment.appointment_date, Appointment.appointment_time)
            .limit(limit)
            .all()
        )

    def list_for_client(self, client_id: UUID) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.client_id == client_id)
            .order_by(Appointment.appointment_date.desc())
            .all()
        )
