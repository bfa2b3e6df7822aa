"""
Appointment model.
"""

from sqlalchemy import Column, Text, DateTime, Date, Time, ForeignKey, Integer, Boolean, Uuid
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow, enum_column
from domain.enums import AppointmentStatus, AppointmentType


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(Text, nullable=False)
    description = Column(Text)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    type = Column(
        enum_column(AppointmentType), nullable=False, default=AppointmentType.CONSULTATION
    )
    status = Column(
        enum_column(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED
    )
    location = Column(Text)
    is_virtual = Column(Boolean, nullable=False, default=False)
    meeting_link = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    client = relationship("Client")
