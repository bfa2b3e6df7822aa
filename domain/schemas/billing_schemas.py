from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.enums import InvoiceStatus, CreditTransactionType


class SubscriptionPlanResponse(BaseModel):
    id: UUID
    name: str
    display_name: str
    description: Optional[str] = None
    price_monthly: float
    stripe_price_id: Optional[str] = None
    features: Optional[List[str]] = None
    max_clients: int
    max_meal_plans: int
    ai_generations_per_month: int
    sort_order: int

    model_config = {"from_attributes": True}


class CreateCheckoutRequest(BaseModel):
    price_id: str = Field(..., min_length=1, alias="priceId")
    plan_name: Literal["starter", "professional"] = Field(..., alias="planName")

    model_config = {"populate_by_name": True}


class InvoiceCreate(BaseModel):
    client_id: UUID
    amount: float = Field(..., gt=0, le=100000)
    currency: str = Field(default="eur", min_length=3, max_length=3)
    description: Optional[str] = Field(default=None, max_length=1000)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT


class InvoiceUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0, le=100000)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[date] = None
    status: Optional[InvoiceStatus] = None


class InvoiceResponse(BaseModel):
    id: UUID
    dietitian_id: UUID
    client_id: UUID
    invoice_number: str
    amount: float
    currency: str
    status: InvoiceStatus
    description: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PaymentCreateRequest(BaseModel):
    # Presence is checked by the service to return the payments error message
    invoice_id: Optional[UUID] = Field(default=None, alias="invoiceId")
    amount: Optional[float] = Field(default=None, gt=0)
    currency: str = Field(default="eur", min_length=3, max_length=3)

    model_config = {"populate_by_name": True}


class CreditTransactionCreate(BaseModel):
    transaction_type: Optional[str] = None
    amount: Optional[int] = None
    description: Optional[str] = Field(default=None, max_length=500)
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None


class CreditsResponse(BaseModel):
    id: UUID
    dietitian_id: UUID
    credits_balance: int
    total_earned: int
    total_spent: int
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CreditTransactionResponse(BaseModel):
    id: UUID
    dietitian_id: UUID
    transaction_type: CreditTransactionType
    amount: int
    description: Optional[str] = None
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
