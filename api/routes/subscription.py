"""Subscription billing routes"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from domain.models import Dietitian
from domain.schemas import CreateCheckoutRequest, SubscriptionPlanResponse
from services import SubscriptionService

router = APIRouter(prefix="/subscription", tags=["Subscription"])
logger = logging.getLogger("nutriflow.api.subscription")


@router.get("/plans", response_model=List[SubscriptionPlanResponse])
def list_plans(db: Session = Depends(get_db)):
    """Active plans in display order (public)."""
    return SubscriptionService.list_plans(db)


@router.get("/status")
def get_status(
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return SubscriptionService.get_status(db, dietitian)


@router.post("/create-checkout")
def create_checkout(
    payload: CreateCheckoutRequest,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return SubscriptionService.create_checkout(db, dietitian, payload.price_id, payload.plan_name)


@router.post("/portal")
def create_portal(dietitian: Dietitian = Depends(get_current_dietitian)):
    return SubscriptionService.create_portal(dietitian)


@router.get("/usage")
def get_usage(
    usage_type: Optional[str] = Query(default=None, alias="type"),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return SubscriptionService.get_usage(db, dietitian, usage_type)


@router.get("/webhook")
def webhook_status():
    return {"message": "Stripe webhook endpoint is active"}


@router.post("/webhook")
async def subscription_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
):
    payload = await request.body()
    return SubscriptionService.handle_webhook(db, payload, stripe_signature)
