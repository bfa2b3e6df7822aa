"""
Dietitian (tenant) model.
"""

from sqlalchemy import Column, Text, DateTime, Uuid
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow, enum_column
from domain.enums import SubscriptionStatus


class Dietitian(Base):
    """Practitioner account; owner of every tenant-scoped row"""

    __tablename__ = "dietitians"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Subject of the hosted-auth access token
    auth_user_id = Column(Uuid, unique=True, nullable=False, index=True)
    email = Column(Text, unique=True, nullable=False)
    first_name = Column(Text)
    last_name = Column(Text)

    stripe_customer_id = Column(Text, unique=True)
    subscription_id = Column(Text, index=True)
    subscription_status = Column(
        enum_column(SubscriptionStatus),
        nullable=False,
        default=SubscriptionStatus.TRIALING,
    )
    subscription_plan = Column(Text, nullable=False, default="free")
    subscription_started_at = Column(DateTime(timezone=True))
    subscription_ends_at = Column(DateTime(timezone=True))
    subscription_current_period_end = Column(DateTime(timezone=True))
    trial_ends_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    clients = relationship(
        "Client", back_populates="dietitian", cascade="all, delete-orphan"
    )
    credits = relationship(
        "DietitianCredits",
        back_populates="dietitian",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def display_name(self) -> str:
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or self.email
