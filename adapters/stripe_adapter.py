"""Stripe adapter for subscription checkout, billing portal and invoice payments.
"""

from typing import Any, Dict, Optional
import json
import logging

import stripe

from app.exceptions import ExternalServiceError, ServiceValidationError

logger = logging.getLogger("nutriflow.stripe")

_configured = False

PROVIDER_NAME = "stripe"


def connect(api_key: Optional[str]):
    """Configure the Stripe SDK with the secret key.

    Without a key the adapter stays unconfigured and every call raises
    ExternalServiceError.
    """
    global _configured
    if not api_key:
        _configured = False
        logger.warning("Stripe secret key not set; billing endpoints are disabled")
        return
    stripe.api_key = api_key
    _configured = True
    logger.info("Stripe client configured")


def close():
    global _configured
    _configured = False
    stripe.api_key = None


def is_configured() -> bool:
    return _configured


def _require_configured():
    if not _configured:
        raise ExternalServiceError("Payment provider not configured")


def create_customer(email: str, name: str, metadata: Optional[Dict[str, str]] = None) -> str:
    """Create a Stripe customer and return its id."""
    _require_configured()
    try:
        customer = stripe.Customer.create(email=email, name=name, metadata=metadata or {})
    except stripe.StripeError as exc:
        logger.error("Stripe customer creation failed for %s: %s", email, exc)
        raise ExternalServiceError("Failed to create customer") from exc
    return customer["id"]


def create_checkout_session(
    customer_id: str,
    price_id: str,
    metadata: Dict[str, str],
    success_url: str,
    cancel_url: str,
) -> Dict[str, Any]:
    """Create a subscription Checkout Session; returns ``{"id", "url"}``."""
    _require_configured()
    try:
        session = stripe.checkout.Session.create(
            customer=customer_id,
            mode="subscription",
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data={"metadata": metadata},
            allow_promotion_codes=True,
        )
    except stripe.StripeError as exc:
        logger.error("Stripe checkout session failed for %s: %s", customer_id, exc)
        raise ExternalServiceError("Failed to create checkout session") from exc
    return {"id": session["id"], "url": session["url"]}


def create_billing_portal_session(customer_id: str, return_url: str) -> Dict[str, Any]:
    _require_configured()
    try:
        session = stripe.billing_portal.Session.create(
            customer=customer_id, return_url=return_url
        )
    except stripe.StripeError as exc:
        logger.error("Stripe billing portal failed for %s: %s", customer_id, exc)
        raise ExternalServiceError("Failed to create billing portal session") from exc
    return {"id": session["id"], "url": session["url"]}


def create_payment_intent(
    amount_cents: int, currency: str, metadata: Dict[str, str]
) -> Dict[str, Any]:
    _require_configured()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount_cents,
            currency=currency,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as exc:
        logger.error("Stripe payment intent failed: %s", exc)
        raise ExternalServiceError("Failed to create payment") from exc
    return {
        "id": intent["id"],
        "client_secret": intent["client_secret"],
        "amount": intent["amount"],
        "currency": intent["currency"],
        "status": intent["status"],
    }


def retrieve_payment_intent(payment_intent_id: str) -> Dict[str, Any]:
    _require_configured()
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.StripeError as exc:
        logger.error("Stripe payment intent lookup failed for %s: %s", payment_intent_id, exc)
        raise ExternalServiceError("Failed to confirm payment") from exc
    return {
        "id": intent["id"],
        "status": intent["status"],
        "amount": intent["amount"],
        "currency": intent["currency"],
        "metadata": dict(intent.get("metadata") or {}),
    }


def construct_event(payload: bytes, signature: str, secret: str) -> Dict[str, Any]:
    """Verify a webhook signature and return the decoded event as a plain dict.

    Raises:
        ServiceValidationError: if the payload or signature is invalid
    """
    body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    try:
        stripe.WebhookSignature.verify_header(body, signature, secret)
        return json.loads(body)
    except stripe.SignatureVerificationError as exc:
        logger.warning("Stripe webhook signature verification failed: %s", exc)
        raise ServiceValidationError("Invalid signature", code="INVALID_SIGNATURE") from exc
    except ValueError as exc:
        logger.warning("Stripe webhook payload is not valid JSON: %s", exc)
        raise ServiceValidationError("Invalid payload", code="INVALID_PAYLOAD") from exc
