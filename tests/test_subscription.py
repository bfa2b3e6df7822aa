"""
Tests for subscription billing.

Covers:
- GET /api/subscription/plans, /status and /usage
- Checkout and billing portal (Stripe calls patched out)
- POST /api/subscription/webhook signature checks and the event state machine
"""

from datetime import datetime, timedelta, timezone

import pytest

from test_fixtures import (
    client,
    db_session,
    dietitian_headers,
    make_client,
    make_dietitian,
    seed_plans,
    stripe_event,
    stripe_signature,
)
from adapters import stripe_adapter
from app.config import settings
from domain.enums import SubscriptionStatus
from domain.models import SubscriptionEvent
from services.subscription_service import SubscriptionService, month_start


def _post_webhook(payload: str, secret: str = None, signature: str = None):
    headers = {"Content-Type": "application/json"}
    if signature is None:
        signature = stripe_signature(payload, secret or settings.stripe_webhook_secret)
    if signature:
        headers["Stripe-Signature"] = signature
    return client.post("/api/subscription/webhook", content=payload, headers=headers)


@pytest.fixture
def fake_stripe(monkeypatch):
    calls = {}

    def create_customer(email, name, metadata=None):
        calls["customer"] = {"email": email, "name": name, "metadata": metadata}
        return "cus_new"

    def create_checkout_session(customer_id, price_id, metadata, success_url, cancel_url):
        calls["checkout"] = {"customer_id": customer_id, "price_id": price_id, "metadata": metadata}
        return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    def create_billing_portal_session(customer_id, return_url):
        calls["portal"] = customer_id
        return {"id": "bps_1", "url": "https://billing.stripe.test/bps_1"}

    monkeypatch.setattr(stripe_adapter, "create_customer", create_customer)
    monkeypatch.setattr(stripe_adapter, "create_checkout_session", create_checkout_session)
    monkeypatch.setattr(
        stripe_adapter, "create_billing_portal_session", create_billing_portal_session
    )
    return calls


# =============================================================================
# PLANS, STATUS, USAGE
# =============================================================================


def test_plans_are_public_and_ordered(db_session):
    seed_plans(db_session)

    response = client.get("/api/subscription/plans")

    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["free", "starter", "professional"]
    assert response.json()[2]["max_clients"] == -1


def test_status_reports_trial(db_session):
    seed_plans(db_session)
    dietitian = make_dietitian(db_session, plan="starter", trial_days_left=5)

    response = client.get("/api/subscription/status", headers=dietitian_headers(dietitian))

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "trialing"
    assert body["plan"] == "starter"
    assert body["isTrialing"] is True
    assert body["trialDaysLeft"] in (5, 6)
    assert body["planDetails"]["display_name"] == "Starter"


def test_status_with_expired_trial(db_session):
    dietitian = make_dietitian(db_session, trial_days_left=-2)

    body = SubscriptionService.get_status(db_session, dietitian)

    assert body["isTrialing"] is False
    assert body["trialDaysLeft"] == 0
    assert body["planDetails"] is None


def test_usage_counts_clients(db_session):
    seed_plans(db_session)
    dietitian = make_dietitian(db_session, plan="free")
    make_client(db_session, dietitian)
    make_client(db_session, dietitian, name="Paul Girard")

    response = client.get(
        "/api/subscription/usage", params={"type": "clients"}, headers=dietitian_headers(dietitian)
    )

    assert response.json() == {"type": "clients", "count": 2, "limit": 3}


@pytest.mark.parametrize("params", [{}, {"type": "storage"}])
def test_usage_rejects_unknown_type(db_session, params):
    dietitian = make_dietitian(db_session)
    response = client.get(
        "/api/subscription/usage", params=params, headers=dietitian_headers(dietitian)
    )
    assert response.status_code == 400


def test_month_start_truncates_to_first_day():
    now = datetime(2025, 3, 17, 15, 42, 7, tzinfo=timezone.utc)
    assert month_start(now) == datetime(2025, 3, 1, tzinfo=timezone.utc)


# =============================================================================
# CHECKOUT AND PORTAL
# =============================================================================


def test_checkout_creates_customer_once(db_session, fake_stripe):
    seed_plans(db_session)
    dietitian = make_dietitian(db_session, plan="free")

    response = client.post(
        "/api/subscription/create-checkout",
        json={"priceId": "price_starter", "planName": "starter"},
        headers=dietitian_headers(dietitian),
    )

    assert response.status_code == 200
    assert response.json() == {
        "sessionId": "cs_test_1",
        "checkoutUrl": "https://checkout.stripe.test/cs_test_1",
    }
    assert fake_stripe["customer"]["email"] == dietitian.email
    assert fake_stripe["checkout"]["customer_id"] == "cus_new"
    assert fake_stripe["checkout"]["metadata"]["plan_name"] == "starter"
    db_session.expire_all()
    db_session.refresh(dietitian)
    assert dietitian.stripe_customer_id == "cus_new"


def test_checkout_reuses_existing_customer(db_session, fake_stripe):
    dietitian = make_dietitian(db_session, stripe_customer_id="cus_existing")

    client.post(
        "/api/subscription/create-checkout",
        json={"priceId": "price_professional", "planName": "professional"},
        headers=dietitian_headers(dietitian),
    )

    assert "customer" not in fake_stripe
    assert fake_stripe["checkout"]["customer_id"] == "cus_existing"


def test_checkout_refused_with_live_subscription(db_session, fake_stripe):
    dietitian = make_dietitian(
        db_session,
        status=SubscriptionStatus.ACTIVE,
        stripe_customer_id="cus_1",
        subscription_id="sub_1",
    )

    response = client.post(
        "/api/subscription/create-checkout",
        json={"priceId": "price_starter", "planName": "starter"},
        headers=dietitian_headers(dietitian),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Subscription already exists"


def test_checkout_rejects_unknown_plan_name(db_session, fake_stripe):
    dietitian = make_dietitian(db_session)
    response = client.post(
        "/api/subscription/create-checkout",
        json={"priceId": "price_x", "planName": "enterprise"},
        headers=dietitian_headers(dietitian),
    )
    assert response.status_code == 400


def test_checkout_without_stripe_is_503(db_session):
    dietitian = make_dietitian(db_session)
    response = client.post(
        "/api/subscription/create-checkout",
        json={"priceId": "price_starter", "planName": "starter"},
        headers=dietitian_headers(dietitian),
    )
    assert response.status_code == 503


def test_portal_requires_customer(db_session, fake_stripe):
    without = make_dietitian(db_session)
    with_customer = make_dietitian(db_session, stripe_customer_id="cus_portal")

    missing = client.post("/api/subscription/portal", headers=dietitian_headers(without))
    ok = client.post("/api/subscription/portal", headers=dietitian_headers(with_customer))

    assert missing.status_code == 400
    assert missing.json()["error"] == "No subscription found"
    assert ok.json() == {"portalUrl": "https://billing.stripe.test/bps_1"}
    assert fake_stripe["portal"] == "cus_portal"


# =============================================================================
# WEBHOOK
# =============================================================================


def test_webhook_get_reports_liveness():
    response = client.get("/api/subscription/webhook")
    assert response.json() == {"message": "Stripe webhook endpoint is active"}


def test_webhook_without_signature_is_400():
    response = _post_webhook(stripe_event("invoice.payment_failed", {}), signature="")

    assert response.status_code == 400
    assert response.json()["error"] == "No signature"


def test_webhook_with_bad_signature_is_400():
    payload = stripe_event("invoice.payment_failed", {})

    response = _post_webhook(payload, secret="whsec_wrong")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid signature"


def test_webhook_with_stale_timestamp_is_400():
    payload = stripe_event("invoice.payment_failed", {})
    stale = int((datetime.now(timezone.utc) - timedelta(minutes=10)).timestamp())

    response = _post_webhook(
        payload, signature=stripe_signature(payload, settings.stripe_webhook_secret, stale)
    )

    assert response.status_code == 400


def test_unhandled_event_is_acknowledged():
    response = _post_webhook(stripe_event("customer.created", {"id": "cus_1"}))

    assert response.status_code == 200
    assert response.json() == {"received": True}


def test_checkout_completed_during_trial_restarts_trial(db_session):
    seed_plans(db_session)
    dietitian = make_dietitian(db_session, plan="free", trial_days_left=3)
    payload = stripe_event(
        "checkout.session.completed",
        {
            "object": "checkout.session",
            "customer": "cus_42",
            "subscription": "sub_42",
            "metadata": {"dietitian_id": str(dietitian.id), "plan_name": "starter"},
        },
    )

    response = _post_webhook(payload)

    assert response.status_code == 200
    db_session.expire_all()
    db_session.refresh(dietitian)
    assert dietitian.subscription_status == SubscriptionStatus.TRIALING
    assert dietitian.subscription_plan == "starter"
    assert dietitian.stripe_customer_id == "cus_42"
    assert dietitian.subscription_id == "sub_42"
    remaining = dietitian.trial_ends_at.replace(tzinfo=timezone.utc) - datetime.now(timezone.utc)
    assert remaining > timedelta(days=settings.trial_days - 1)

    (event,) = db_session.query(SubscriptionEvent).filter_by(dietitian_id=dietitian.id).all()
    assert event.event_type == "checkout_completed"
    assert event.previous_plan == "free"
    assert event.new_plan == "starter"


def test_checkout_completed_after_trial_activates(db_session):
    dietitian = make_dietitian(db_session, plan="free", trial_days_left=-1)
    payload = stripe_event(
        "checkout.session.completed",
        {
            "customer": "cus_7",
            "subscription": "sub_7",
            "metadata": {"dietitian_id": str(dietitian.id), "plan_name": "professional"},
        },
    )

    _post_webhook(payload)

    db_session.expire_all()
    db_session.refresh(dietitian)
    assert dietitian.subscription_status == SubscriptionStatus.ACTIVE
    assert dietitian.subscription_plan == "professional"


def test_subscription_deleted_falls_back_to_free(db_session):
    dietitian = make_dietitian(
        db_session,
        plan="professional",
        status=SubscriptionStatus.ACTIVE,
        stripe_customer_id="cus_del",
        subscription_id="sub_del",
    )
    payload = stripe_event(
        "customer.subscription.deleted",
        {"object": "subscription", "id": "sub_del", "customer": "cus_del", "status": "canceled"},
    )

    _post_webhook(payload)

    db_session.expire_all()
    db_session.refresh(dietitian)
    assert dietitian.subscription_status == SubscriptionStatus.CANCELED
    assert dietitian.subscription_plan == "free"
    assert dietitian.subscription_ends_at is not None


def test_subscription_updated_maps_price_to_plan(db_session):
    seed_plans(db_session)
    dietitian = make_dietitian(
        db_session,
        plan="starter",
        status=SubscriptionStatus.ACTIVE,
        stripe_customer_id="cus_up",
        subscription_id="sub_up",
    )
    period_end = int((datetime.now(timezone.utc) + timedelta(days=30)).timestamp())
    payload = stripe_event(
        "customer.subscription.updated",
        {
            "object": "subscription",
            "id": "sub_up",
            "customer": "cus_up",
            "status": "active",
            "current_period_end": period_end,
            "items": {"data": [{"price": {"id": "price_professional"}}]},
        },
    )

    _post_webhook(payload)

    db_session.expire_all()
    db_session.refresh(dietitian)
    assert dietitian.subscription_plan == "professional"
    assert dietitian.subscription_current_period_end is not None


def test_payment_failed_then_succeeded(db_session):
    dietitian = make_dietitian(
        db_session,
        status=SubscriptionStatus.ACTIVE,
        stripe_customer_id="cus_pay",
        subscription_id="sub_pay",
    )

    _post_webhook(stripe_event("invoice.payment_failed", {"customer": "cus_pay"}))
    db_session.expire_all()
    db_session.refresh(dietitian)
    assert dietitian.subscription_status == SubscriptionStatus.PAST_DUE

    _post_webhook(stripe_event("invoice.payment_succeeded", {"customer": "cus_pay"}))
    db_session.expire_all()
    db_session.refresh(dietitian)
    assert dietitian.subscription_status == SubscriptionStatus.ACTIVE

    events = db_session.query(SubscriptionEvent).filter_by(dietitian_id=dietitian.id).all()
    assert {e.event_type for e in events} == {"payment_failed", "payment_succeeded"}


def test_event_for_unknown_customer_is_ignored(db_session):
    response = _post_webhook(stripe_event("invoice.payment_failed", {"customer": "cus_ghost"}))

    assert response.status_code == 200
    assert db_session.query(SubscriptionEvent).count() == 0
