"""Appointment routes"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from domain.enums import AppointmentStatus
from domain.models import Dietitian
from domain.schemas import AppointmentCreate, AppointmentResponse, AppointmentUpdate
from services import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    client_id: Optional[UUID] = Query(default=None),
    status_filter: Optional[AppointmentStatus] = Query(default=None, alias="status"),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Appointments in date order, optionally within [date_from, date_to]."""
    return AppointmentService.list_appointments(
        db,
        dietitian.id,
        client_id=client_id,
        status=status_filter.value if status_filter else None,
        date_from=date_from,
        date_to=date_to,
    )


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return AppointmentService.create_appointment(db, dietitian.id, payload)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return AppointmentService.get_appointment(db, dietitian.id, appointment_id)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: UUID,
    payload: AppointmentUpdate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return AppointmentService.update_appointment(db, dietitian.id, appointment_id, payload)


@router.delete("/{appointment_id}")
def delete_appointment(
    appointment_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    AppointmentService.delete_appointment(db, dietitian.id, appointment_id)
    return {"success": True, "deleted": str(appointment_id)}
