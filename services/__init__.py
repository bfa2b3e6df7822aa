"""Services package - Business logic layer"""

from services.client_auth_service import ClientAuthService
from services.dietitian_service import DietitianService
from services.client_service import ClientService
from services.portal_service import PortalService
from services.messaging_service import MessagingService
from services.document_service import DocumentService
from services.meal_plan_service import MealPlanService
from services.meal_plan_generation_service import MealPlanGenerationService
from services.appointment_service import AppointmentService
from services.invoice_service import InvoiceService, PaymentService
from services.credits_service import CreditsService
from services.subscription_service import SubscriptionService
from services.gdpr_service import GdprService
from services.security_service import SecurityService

# Note: client_auth_service also exposes the token and password helpers
# (create_client_token, validate_client_session, hash_password, ...)

__all__ = [
    "ClientAuthService",
    "DietitianService",
    "ClientService",
    "PortalService",
    "MessagingService",
    "DocumentService",
    "MealPlanService",
    "MealPlanGenerationService",
    "AppointmentService",
    "InvoiceService",
    "PaymentService",
    "CreditsService",
    "SubscriptionService",
    "GdprService",
    "SecurityService",
]
