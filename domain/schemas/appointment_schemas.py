from datetime import date, datetime, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.enums import AppointmentStatus, AppointmentType


class AppointmentCreate(BaseModel):
    client_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    appointment_date: date
    appointment_time: time
    duration_minutes: int = Field(default=60, ge=5, le=480)
    type: AppointmentType = AppointmentType.CONSULTATION
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    location: Optional[str] = Field(default=None, max_length=200)
    is_virtual: bool = False
    meeting_link: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)


class AppointmentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    appointment_date: Optional[date] = None
    appointment_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(default=None, ge=5, le=480)
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    location: Optional[str] = Field(default=None, max_length=200)
    is_virtual: Optional[bool] = None
    meeting_link: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)


class AppointmentResponse(BaseModel):
    id: UUID
    dietitian_id: UUID
    client_id: UUID
    title: str
    description: Optional[str] = None
    appointment_date: date
    appointment_time: time
    duration_minutes: int
    type: AppointmentType
    status: AppointmentStatus
    location: Optional[str] = None
    is_virtual: bool
    meeting_link: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
