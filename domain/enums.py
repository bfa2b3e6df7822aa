"""
Domain enums for NutriFlow.
Contains all enumeration types used across the domain models.
"""

import enum


class SubscriptionStatus(str, enum.Enum):
    """Dietitian subscription state (mirrors Stripe subscription statuses)"""

    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    PAUSED = "paused"
    INACTIVE = "inactive"


class ClientStatus(str, enum.Enum):
    """Client lifecycle in a dietitian's practice"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PAUSED = "paused"
    COMPLETED = "completed"
    ANONYMIZED = "anonymized"


class MealPlanStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class GenerationMethod(str, enum.Enum):
    MANUAL = "manual"
    AI = "ai"
    TEMPLATE = "template"


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AppointmentType(str, enum.Enum):
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow_up"
    INITIAL = "initial"
    GROUP = "group"
    OTHER = "other"


class SenderType(str, enum.Enum):
    CLIENT = "client"
    DIETITIAN = "dietitian"


class DocumentCategory(str, enum.Enum):
    GENERAL = "general"
    MEAL_PLAN = "meal_plan"
    LAB_RESULT = "lab_result"
    PRESCRIPTION = "prescription"
    PHOTO = "photo"
    OTHER = "other"


class ConsentType(str, enum.Enum):
    """GDPR consent purposes a client can grant or withdraw"""

    DATA_PROCESSING = "data_processing"
    HEALTH_DATA = "health_data"
    PHOTOS = "photos"
    MARKETING = "marketing"
    DATA_SHARING = "data_sharing"


class DataRequestType(str, enum.Enum):
    EXPORT = "export"
    PORTABILITY = "portability"
    DELETION = "deletion"


class DataRequestStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class CreditTransactionType(str, enum.Enum):
    EARN = "earn"
    SPEND = "spend"
    REFUND = "refund"
    BONUS = "bonus"
