"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.client_schemas import (
    ClientCreate,
    ClientUpdate,
    ClientResponse,
    ClientAccountResponse,
    WeightEntryResponse,
    DietitianMessageCreate,
    MessageResponse,
    DocumentResponse,
)
from domain.schemas.portal_schemas import (
    ClientLoginRequest,
    WeightCreateRequest,
    SendMessageRequest,
    ConsentItem,
    ConsentUpdateRequest,
    DataRequestCreate,
)
from domain.schemas.meal_plan_schemas import (
    MealPlanCreate,
    MealPlanUpdate,
    MealPlanResponse,
    GenerateMealPlanRequest,
)
from domain.schemas.appointment_schemas import (
    AppointmentCreate,
    AppointmentUpdate,
    AppointmentResponse,
)
from domain.schemas.billing_schemas import (
    SubscriptionPlanResponse,
    CreateCheckoutRequest,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceResponse,
    PaymentCreateRequest,
    CreditTransactionCreate,
    CreditsResponse,
    CreditTransactionResponse,
)
from domain.schemas.gdpr_schemas import (
    ConsentRecordResponse,
    DataRequestResponse,
    RetentionPolicyResponse,
    PrivacyPolicyResponse,
    GdprActionRequest,
    RetentionPolicyUpdate,
)
from domain.schemas.dietitian_schemas import (
    DietitianProfileCreate,
    DietitianProfileUpdate,
    DietitianProfileResponse,
)
from domain.schemas.security_schemas import UserSessionResponse, SessionActionRequest

__all__ = [
    "ClientCreate",
    "ClientUpdate",
    "ClientResponse",
    "ClientAccountResponse",
    "WeightEntryResponse",
    "DietitianMessageCreate",
    "MessageResponse",
    "DocumentResponse",
    "ClientLoginRequest",
    "WeightCreateRequest",
    "SendMessageRequest",
    "ConsentItem",
    "ConsentUpdateRequest",
    "DataRequestCreate",
    "MealPlanCreate",
    "MealPlanUpdate",
    "MealPlanResponse",
    "GenerateMealPlanRequest",
    "AppointmentCreate",
    "AppointmentUpdate",
    "AppointmentResponse",
    "SubscriptionPlanResponse",
    "CreateCheckoutRequest",
    "InvoiceCreate",
    "InvoiceUpdate",
    "InvoiceResponse",
    "PaymentCreateRequest",
    "CreditTransactionCreate",
    "CreditsResponse",
    "CreditTransactionResponse",
    "ConsentRecordResponse",
    "DataRequestResponse",
    "RetentionPolicyResponse",
    "PrivacyPolicyResponse",
    "GdprActionRequest",
    "RetentionPolicyUpdate",
    "DietitianProfileCreate",
    "DietitianProfileUpdate",
    "DietitianProfileResponse",
    "UserSessionResponse",
    "SessionActionRequest",
]
