"""API routes package"""

from . import (
    health,
    client_auth,
    clients,
    documents,
    meal_plans,
    appointments,
    invoices,
    payments,
    subscription,
    credits,
    gdpr,
    generate,
    profile,
    security,
)

__all__ = [
    "health",
    "client_auth",
    "clients",
    "documents",
    "meal_plans",
    "appointments",
    "invoices",
    "payments",
    "subscription",
    "credits",
    "gdpr",
    "generate",
    "profile",
    "security",
]
