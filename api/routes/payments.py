"""Invoice payment routes (Stripe PaymentIntents)"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from domain.models import Dietitian
from domain.schemas import PaymentCreateRequest
from services import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("")
def create_payment(
    payload: PaymentCreateRequest,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Create a PaymentIntent for one of the dietitian's invoices."""
    return PaymentService.create_payment(
        db, dietitian.id, payload.invoice_id, payload.amount, payload.currency
    )


@router.get("")
def confirm_payment(
    payment_intent_id: Optional[str] = Query(default=None),
    dietitian: Dietitian = Depends(get_current_dietitian),
):
    return PaymentService.confirm_payment(payment_intent_id)


@router.post("/webhook")
async def payments_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
):
    """Stripe webhook; a succeeded PaymentIntent marks its invoice paid."""
    payload = await request.body()
    return PaymentService.handle_webhook(db, payload, stripe_signature)
