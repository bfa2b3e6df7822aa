"""
Subscription billing: plan catalog, plan limits, Stripe checkout/portal and
the subscription webhook state machine.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging
import math
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adapters import stripe_adapter
from app.config import settings
from app.exceptions import (
    ForbiddenError,
    NutriFlowError,
    ServiceValidationError,
)
from domain.enums import SubscriptionStatus
from domain.models import (
    Dietitian,
    SubscriptionEvent,
    SubscriptionPlan,
    as_utc,
    utcnow,
)
from domain.schemas import SubscriptionPlanResponse
from repositories import (
    AIGenerationRepository,
    ClientRepository,
    DietitianRepository,
    MealPlanRepository,
    SubscriptionEventRepository,
    SubscriptionPlanRepository,
)

logger = logging.getLogger("nutriflow.services.subscription")

USAGE_TYPES = ("clients", "meal_plans", "ai_generations")
MEAL_PLAN_WINDOW_DAYS = 30

# Stripe subscription status -> stored status
_STATUS_MAP = {status.value: status for status in SubscriptionStatus}

# Statuses that already hold a paid (or trial) Stripe subscription
_BLOCKING_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _from_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


class SubscriptionService:
    # ------------------------------------------------------------------
    # Catalog and limits
    # ------------------------------------------------------------------

    @staticmethod
    def list_plans(db: Session):
        return SubscriptionPlanRepository(db).list_active()

    @staticmethod
    def get_plan(db: Session, dietitian: Dietitian) -> Optional[SubscriptionPlan]:
        return SubscriptionPlanRepository(db).get_by_name(dietitian.subscription_plan)

    @staticmethod
    def count_usage(db: Session, dietitian: Dietitian, usage_type: str) -> int:
        """Current consumption for a limited resource.

        clients: all clients; meal_plans: created in the last 30 days;
        ai_generations: successful generations this calendar month.
        """
        if usage_type == "clients":
            return ClientRepository(db).count_for_dietitian(dietitian.id)
        if usage_type == "meal_plans":
            since = utcnow() - timedelta(days=MEAL_PLAN_WINDOW_DAYS)
            return MealPlanRepository(db).count_created_since(dietitian.id, since)
        if usage_type == "ai_generations":
            return AIGenerationRepository(db).count_successful_since(
                dietitian.id, month_start()
            )
        raise ServiceValidationError("Invalid usage type")

    @staticmethod
    def ensure_within_limit(db: Session, dietitian: Dietitian, usage_type: str) -> None:
        """
        Raise ForbiddenError when creating one more ``usage_type`` would exceed
        the dietitian's plan. A limit of -1 means unlimited.
        """
        plan = SubscriptionService.get_plan(db, dietitian)
        if plan is None:
            logger.warning(
                f"No plan '{dietitian.subscription_plan}' for dietitian {dietitian.id}; "
                "limits not enforced"
            )
            return
        limit = plan.max_clients if usage_type == "clients" else plan.max_meal_plans
        if limit is None or limit < 0:
            return
        used = SubscriptionService.count_usage(db, dietitian, usage_type)
        if used >= limit:
            label = "clients" if usage_type == "clients" else "plans alimentaires"
            raise ForbiddenError(
                f"Limite de {label} atteinte pour votre plan ({limit})",
                details={
                    "requiresUpgrade": True,
                    "currentPlan": plan.name,
                    "limit": limit,
                    "used": used,
                },
                code="PLAN_LIMIT_REACHED",
            )

    @staticmethod
    def get_usage(db: Session, dietitian: Dietitian, usage_type: Optional[str]) -> Dict[str, Any]:
        if usage_type not in USAGE_TYPES:
            raise ServiceValidationError("Invalid usage type")
        plan = SubscriptionService.get_plan(db, dietitian)
        limit = None
        if plan is not None:
            limit = {
                "clients": plan.max_clients,
                "meal_plans": plan.max_meal_plans,
                "ai_generations": plan.ai_generations_per_month,
            }[usage_type]
        return {
            "type": usage_type,
            "count": SubscriptionService.count_usage(db, dietitian, usage_type),
            "limit": limit,
        }

    # ------------------------------------------------------------------
    # Status, checkout, portal
    # ------------------------------------------------------------------

    @staticmethod
    def get_status(db: Session, dietitian: Dietitian, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utcnow()
        trial_ends_at = as_utc(dietitian.trial_ends_at)
        is_trialing = (
            dietitian.subscription_status == SubscriptionStatus.TRIALING
            and trial_ends_at is not None
            and trial_ends_at > now
        )
        trial_days_left = 0
        if trial_ends_at is not None and trial_ends_at > now:
            trial_days_left = max(0, math.ceil((trial_ends_at - now).total_seconds() / 86400))

        plan = SubscriptionService.get_plan(db, dietitian)
        return {
            "status": dietitian.subscription_status.value,
            "plan": dietitian.subscription_plan,
            "subscriptionId": dietitian.subscription_id,
            "startedAt": _iso(dietitian.subscription_started_at),
            "endsAt": _iso(dietitian.subscription_ends_at),
            "currentPeriodEnd": _iso(dietitian.subscription_current_period_end),
            "trialEndsAt": _iso(trial_ends_at),
            "isTrialing": is_trialing,
            "trialDaysLeft": trial_days_left,
            "planDetails": (
                SubscriptionPlanResponse.model_validate(plan).model_dump(mode="json")
                if plan
                else None
            ),
        }

    @staticmethod
    def create_checkout(db: Session, dietitian: Dietitian, price_id: str, plan_name: str) -> Dict[str, Any]:
        """
        Start a Stripe Checkout for a subscription upgrade.

        A dietitian on the default trial (no Stripe subscription yet) may check
        out; one already holding an active or trialing subscription may not.
        """
        if dietitian.subscription_id and dietitian.subscription_status in _BLOCKING_STATUSES:
            raise ServiceValidationError("Subscription already exists")

        repo = DietitianRepository(db)
        if not dietitian.stripe_customer_id:
            customer_id = stripe_adapter.create_customer(
                email=dietitian.email,
                name=dietitian.display_name,
                metadata={"dietitian_id": str(dietitian.id)},
            )
            dietitian.stripe_customer_id = customer_id
            repo.update(dietitian)
            logger.info(f"Created Stripe customer for dietitian {dietitian.id}")

        session = stripe_adapter.create_checkout_session(
            customer_id=dietitian.stripe_customer_id,
            price_id=price_id,
            metadata={"dietitian_id": str(dietitian.id), "plan_name": plan_name},
            success_url=f"{settings.app_base_url}/dashboard?upgrade=success",
            cancel_url=f"{settings.app_base_url}/dashboard/upgrade?canceled=true",
        )
        return {"sessionId": session["id"], "checkoutUrl": session["url"]}

    @staticmethod
    def create_portal(dietitian: Dietitian) -> Dict[str, Any]:
        if not dietitian.stripe_customer_id:
            raise ServiceValidationError("No subscription found")
        session = stripe_adapter.create_billing_portal_session(
            dietitian.stripe_customer_id,
            return_url=f"{settings.app_base_url}/dashboard/settings",
        )
        return {"portalUrl": session["url"]}

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    @staticmethod
    def handle_webhook(db: Session, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify and apply a Stripe subscription webhook.

        Raises:
            ServiceValidationError: missing or invalid signature
            NutriFlowError: webhook secret not configured
        """
        if not signature:
            raise ServiceValidationError("No signature", code="MISSING_SIGNATURE")
        if not settings.stripe_webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET is not configured")
            raise NutriFlowError("Webhook secret not configured")

        event = stripe_adapter.construct_event(payload, signature, settings.stripe_webhook_secret)
        event_type = event.get("type")
        data = (event.get("data") or {}).get("object") or {}
        handler = _WEBHOOK_HANDLERS.get(event_type)
        if handler is None:
            logger.info(f"Unhandled Stripe event type {event_type}")
            return {"received": True}

        try:
            handler(db, event, data)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to apply Stripe event {event.get('id')}")
            raise
        return {"received": True}


# ============================================================================
# Webhook handlers
# ============================================================================


def _record_event(
    db: Session,
    dietitian: Dietitian,
    event: Dict[str, Any],
    event_type: str,
    previous_status: Optional[str],
    previous_plan: Optional[str],
    subscription_id: Optional[str] = None,
) -> None:
    SubscriptionEventRepository(db).create(
        SubscriptionEvent(
            dietitian_id=dietitian.id,
            event_type=event_type,
            stripe_event_id=event.get("id"),
            stripe_subscription_id=subscription_id or dietitian.subscription_id,
            previous_status=previous_status,
            new_status=dietitian.subscription_status.value,
            previous_plan=previous_plan,
            new_plan=dietitian.subscription_plan,
            event_data=(event.get("data") or {}).get("object"),
        )
    )


def _find_dietitian(db: Session, data: Dict[str, Any]) -> Optional[Dietitian]:
    repo = DietitianRepository(db)
    dietitian = None
    customer = data.get("customer")
    if customer:
        dietitian = repo.get_by_stripe_customer_id(customer)
    subscription_id = data.get("subscription") or (
        data.get("id") if data.get("object") == "subscription" else None
    )
    if dietitian is None and subscription_id:
        dietitian = repo.get_by_subscription_id(subscription_id)
    if dietitian is None:
        logger.warning(f"No dietitian for Stripe customer {customer}")
    return dietitian


def _handle_checkout_completed(db: Session, event, session) -> None:
    metadata = session.get("metadata") or {}
    customer = session.get("customer")
    subscription_id = session.get("subscription")
    dietitian_id = metadata.get("dietitian_id")
    if not (customer and subscription_id and dietitian_id):
        logger.warning("checkout.session.completed without customer/subscription/dietitian")
        return

    try:
        dietitian = DietitianRepository(db).get_by_id(uuid.UUID(dietitian_id))
    except ValueError:
        dietitian = None
    if dietitian is None:
        logger.warning(f"checkout.session.completed for unknown dietitian {dietitian_id}")
        return

    previous_status = dietitian.subscription_status.value
    previous_plan = dietitian.subscription_plan
    now = utcnow()
    trial_ends_at = as_utc(dietitian.trial_ends_at)
    trial_expired = trial_ends_at is not None and trial_ends_at <= now

    dietitian.stripe_customer_id = customer
    dietitian.subscription_id = subscription_id
    dietitian.subscription_plan = metadata.get("plan_name") or dietitian.subscription_plan
    dietitian.subscription_started_at = now
    if trial_expired:
        dietitian.subscription_status = SubscriptionStatus.ACTIVE
    else:
        dietitian.subscription_status = SubscriptionStatus.TRIALING
        dietitian.trial_ends_at = now + timedelta(days=settings.trial_days)
    DietitianRepository(db).update(dietitian)
    _record_event(db, dietitian, event, "checkout_completed", previous_status, previous_plan)
    logger.info(f"Checkout completed for dietitian {dietitian.id}")


def _plan_from_subscription(db: Session, subscription: Dict[str, Any]) -> Optional[str]:
    plan_name = (subscription.get("metadata") or {}).get("plan_name")
    if plan_name:
        return plan_name
    items = (subscription.get("items") or {}).get("data") or []
    if items:
        price_id = ((items[0] or {}).get("price") or {}).get("id")
        if price_id:
            plan = SubscriptionPlanRepository(db).get_by_price_id(price_id)
            if plan:
                return plan.name
    return None


def _handle_subscription_changed(db: Session, event, subscription) -> None:
    dietitian = _find_dietitian(db, subscription)
    if dietitian is None:
        return
    previous_status = dietitian.subscription_status.value
    previous_plan = dietitian.subscription_plan

    status = _STATUS_MAP.get(subscription.get("status"))
    if status is not None:
        dietitian.subscription_status = status
    dietitian.subscription_id = subscription.get("id") or dietitian.subscription_id
    plan_name = _plan_from_subscription(db, subscription)
    if plan_name:
        dietitian.subscription_plan = plan_name
    period_end = _from_timestamp(subscription.get("current_period_end"))
    if period_end:
        dietitian.subscription_current_period_end = period_end
    trial_end = _from_timestamp(subscription.get("trial_end"))
    if trial_end:
        dietitian.trial_ends_at = trial_end
    DietitianRepository(db).update(dietitian)

    label = (
        "subscription_created"
        if event.get("type") == "customer.subscription.created"
        else "subscription_updated"
    )
    _record_event(db, dietitian, event, label, previous_status, previous_plan)


def _handle_subscription_deleted(db: Session, event, subscription) -> None:
    dietitian = _find_dietitian(db, subscription)
    if dietitian is None:
        return
    previous_status = dietitian.subscription_status.value
    previous_plan = dietitian.subscription_plan
    dietitian.subscription_status = SubscriptionStatus.CANCELED
    dietitian.subscription_ends_at = utcnow()
    dietitian.subscription_plan = "free"
    DietitianRepository(db).update(dietitian)
    _record_event(
        db,
        dietitian,
        event,
        "subscription_canceled",
        previous_status,
        previous_plan,
        subscription_id=subscription.get("id"),
    )


def _handle_payment_succeeded(db: Session, event, invoice) -> None:
    dietitian = _find_dietitian(db, invoice)
    if dietitian is None:
        return
    previous_status = dietitian.subscription_status.value
    if dietitian.subscription_status in (
        SubscriptionStatus.PAST_DUE,
        SubscriptionStatus.UNPAID,
        SubscriptionStatus.INCOMPLETE,
    ):
        dietitian.subscription_status = SubscriptionStatus.ACTIVE
        DietitianRepository(db).update(dietitian)
    _record_event(
        db, dietitian, event, "payment_succeeded", previous_status, dietitian.subscription_plan
    )


def _handle_payment_failed(db: Session, event, invoice) -> None:
    dietitian = _find_dietitian(db, invoice)
    if dietitian is None:
        return
    previous_status = dietitian.subscription_status.value
    dietitian.subscription_status = SubscriptionStatus.PAST_DUE
    DietitianRepository(db).update(dietitian)
    _record_event(
        db, dietitian, event, "payment_failed", previous_status, dietitian.subscription_plan
    )


def _handle_trial_will_end(db: Session, event, subscription) -> None:
    dietitian = _find_dietitian(db, subscription)
    if dietitian is None:
        return
    status = dietitian.subscription_status.value
    _record_event(db, dietitian, event, "trial_will_end", status, dietitian.subscription_plan)


_WEBHOOK_HANDLERS = {
    "checkout.session.completed": _handle_checkout_completed,
    "customer.subscription.created": _handle_subscription_changed,
    "customer.subscription.updated": _handle_subscription_changed,
    "customer.subscription.deleted": _handle_subscription_deleted,
    "invoice.payment_succeeded": _handle_payment_succeeded,
    "invoice.payment_failed": _handle_payment_failed,
    "customer.subscription.trial_will_end": _handle_trial_will_end,
}
