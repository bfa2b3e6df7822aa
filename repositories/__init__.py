"""
Repository layer for data access.
Provides abstraction over database operations following the Repository pattern.
"""

from repositories.base import BaseRepository, TenantRepository
from repositories.dietitian_repository import DietitianRepository
from repositories.client_repository import (
    ClientRepository,
    ClientAccountRepository,
    WeightEntryRepository,
)
from repositories.meal_plan_repository import MealPlanRepository, AIGenerationRepository
from repositories.appointment_repository import AppointmentRepository
from repositories.messaging_repository import ConversationRepository, MessageRepository
from repositories.document_repository import DocumentRepository
from repositories.gdpr_repository import (
    ConsentRepository,
    DataRequestRepository,
    RetentionPolicyRepository,
    PrivacyPolicyRepository,
)
from repositories.billing_repository import (
    SubscriptionPlanRepository,
    SubscriptionEventRepository,
    InvoiceRepository,
    CreditsRepository,
    CreditTransactionRepository,
)
from repositories.security_repository import UserSessionRepository

__all__ = [
    "BaseRepository",
    "TenantRepository",
    "DietitianRepository",
    "ClientRepository",
    "ClientAccountRepository",
    "WeightEntryRepository",
    "MealPlanRepository",
    "AIGenerationRepository",
    "AppointmentRepository",
    "ConversationRepository",
    "MessageRepository",
    "DocumentRepository",
    "ConsentRepository",
    "DataRequestRepository",
    "RetentionPolicyRepository",
    "PrivacyPolicyRepository",
    "SubscriptionPlanRepository",
    "SubscriptionEventRepository",
    "InvoiceRepository",
    "CreditsRepository",
    "CreditTransactionRepository",
    "UserSessionRepository",
]
