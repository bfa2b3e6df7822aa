"""
Billing models: subscription plans and events, client invoices, credits.
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
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow, enum_column
from domain.enums import InvoiceStatus, CreditTransactionType


class SubscriptionPlan(Base):
    """Catalog entry; limits use -1 for unlimited"""

    __tablename__ = "subscription_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, unique=True, nullable=False)
    display_name = Column(Text, nullable=False)
    description = Column(Text)
    price_monthly = Column(Numeric(10, 2), nullable=False, default=0)
    stripe_price_id = Column(Text, unique=True)
    features = Column(JSON, default=list)
    max_clients = Column(Integer, nullable=False, default=-1)
    max_meal_plans = Column(Integer, nullable=False, default=-1)
    ai_generations_per_month = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)


class SubscriptionEvent(Base):
    """Audit trail of subscription state changes driven by Stripe webhooks"""

    __tablename__ = "subscription_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_type = Column(Text, nullable=False)
    stripe_event_id = Column(Text)
    stripe_subscription_id = Column(Text)
    previous_status = Column(Text)
    new_status = Column(Text)
    previous_plan = Column(Text)
    new_plan = Column(Text)
    event_data = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Invoice(Base):
    """Invoice issued by a dietitian to one of their clients"""

    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("dietitian_id", "invoice_number"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    invoice_number = Column(Text, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(Text, nullable=False, default="eur")
    status = Column(enum_column(InvoiceStatus), nullable=False, default=InvoiceStatus.DRAFT)
    description = Column(Text)
    issue_date = Column(Date)
    due_date = Column(Date)
    payment_date = Column(DateTime(timezone=True))
    payment_intent_id = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    client = relationship("Client")


class DietitianCredits(Base):
    __tablename__ = "dietitian_credits"
    __table_args__ = (
        CheckConstraint("credits_balance >= 0", name="ck_dietitian_credits_balance"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid,
        ForeignKey("dietitians.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    credits_balance = Column(Integer, nullable=False, default=0)
    total_earned = Column(Integer, nullable=False, default=0)
    total_spent = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    dietitian = relationship("Dietitian", back_populates="credits")


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    transaction_type = Column(enum_column(CreditTransactionType), nullable=False)
    amount = Column(Integer, nullable=False)
    description = Column(Text)
    reference_id = Column(Text)
    reference_type = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
