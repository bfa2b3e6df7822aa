from datetime import date
from typing import List, Optional
import logging
import uuid

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, ServiceValidationError
from domain.models import Appointment
from domain.schemas import AppointmentCreate, AppointmentUpdate
from repositories import AppointmentRepository, ClientRepository

logger = logging.getLogger("nutriflow.services.appointments")


class AppointmentService:
    @staticmethod
    def list_appointments(
        db: Session,
        dietitian_id: uuid.UUID,
        client_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Appointment]:
        if date_from and date_to and date_from > date_to:
            raise ServiceValidationError("date_from must not be after date_to")
        return AppointmentRepository(db).list_for_dietitian(
            dietitian_id, client_id=client_id, status=status, date_from=date_from, date_to=date_to
        )

    @staticmethod
    def get_appointment(db: Session, dietitian_id: uuid.UUID, appointment_id: uuid.UUID) -> Appointment:
        appointment = AppointmentRepository(db).get_for_dietitian(dietitian_id, appointment_id)
        if not appointment:
            raise NotFoundError(f"Appointment not found: {appointment_id}")
        return appointment

    @staticmethod
    def create_appointment(
        db: Session, dietitian_id: uuid.UUID, payload: AppointmentCreate
    ) -> Appointment:
        if not ClientRepository(db).get_for_dietitian(dietitian_id, payload.client_id):
            raise NotFoundError(f"Client not found: {payload.client_id}")
        appointment = AppointmentRepository(db).create(
            Appointment(dietitian_id=dietitian_id, **payload.model_dump())
        )
        logger.info(f"Scheduled appointment {appointment.id} for client {payload.client_id}")
        return appointment

    @staticmethod
    def update_appointment(
        db: Session, dietitian_id: uuid.UUID, appointment_id: uuid.UUID, payload: AppointmentUpdate
    ) -> Appointment:
        appointment = AppointmentService.get_appointment(db, dietitian_id, appointment_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(appointment, key, value)
        return AppointmentRepository(db).update(appointment)

    @staticmethod
    def delete_appointment(db: Session, dietitian_id: uuid.UUID, appointment_id: uuid.UUID) -> None:
        appointment = AppointmentService.get_appointment(db, dietitian_id, appointment_id)
        AppointmentRepository(db).delete_entity(appointment)
