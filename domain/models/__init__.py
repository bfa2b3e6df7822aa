"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    init_database,
    check_database,
    get_db_session,
    utcnow,
    as_utc,
)
from domain.models.dietitian import Dietitian
from domain.models.client import Client, ClientAccount, WeightEntry
from domain.models.meal_plan import MealPlan, AIGeneration
from domain.models.appointment import Appointment
from domain.models.messaging import Conversation, Message
from domain.models.document import Document
from domain.models.gdpr import (
    ConsentRecord,
    DataExportRequest,
    DataRetentionPolicy,
    PrivacyPolicyVersion,
)
from domain.models.billing import (
    SubscriptionPlan,
    SubscriptionEvent,
    Invoice,
    DietitianCredits,
    CreditTransaction,
)
from domain.models.security import UserSession

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "init_database",
    "check_database",
    "get_db_session",
    "utcnow",
    "as_utc",
    # Tenant
    "Dietitian",
    # Client models
    "Client",
    "ClientAccount",
    "WeightEntry",
    # Meal plan models
    "MealPlan",
    "AIGeneration",
    "Appointment",
    # Messaging
    "Conversation",
    "Message",
    "Document",
    # GDPR
    "ConsentRecord",
    "DataExportRequest",
    "DataRetentionPolicy",
    "PrivacyPolicyVersion",
    # Billing
    "SubscriptionPlan",
    "SubscriptionEvent",
    "Invoice",
    "DietitianCredits",
    "CreditTransaction",
    # Security
    "UserSession",
]
