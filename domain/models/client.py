"""
Client-related database models.
"""

from sqlalchemy import (
    Column,
    Text,
    DateTime,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    Boolean,
    JSON,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow, enum_column
from domain.enums import ClientStatus


class Client(Base):
    """A dietitian's patient"""

    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(Text, nullable=False)
    email = Column(Text)
    phone = Column(Text)
    age = Column(Integer)
    height = Column(Numeric(5, 1))
    current_weight = Column(Numeric(5, 1))
    goal_weight = Column(Numeric(5, 1))
    goal = Column(Text)
    plan_type = Column(Text)
    status = Column(enum_column(ClientStatus), nullable=False, default=ClientStatus.ACTIVE)
    notes = Column(Text)
    dietary_tags = Column(JSON, default=list)
    join_date = Column(Date)
    last_session = Column(Date)
    next_appointment = Column(DateTime(timezone=True))
    progress_percentage = Column(Integer, default=0)
    anonymized_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    dietitian = relationship("Dietitian", back_populates="clients")
    account = relationship(
        "ClientAccount",
        back_populates="client",
        uselist=False,
        cascade="all, delete-orphan",
    )
    weight_entries = relationship(
        "WeightEntry", back_populates="client", cascade="all, delete-orphan"
    )


class ClientAccount(Base):
    """Portal login for a client (independent of the hosted auth provider)"""

    __tablename__ = "client_accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    email = Column(Text, unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    client = relationship("Client", back_populates="account")


class WeightEntry(Base):
    """Weight measurement recorded by the client or the dietitian"""

    __tablename__ = "weight_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    weight = Column(Numeric(5, 1), nullable=False)
    recorded_date = Column(Date, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    client = relationship("Client", back_populates="weight_entries")
