"""
Tests for client invoicing, invoice payments and credits.

Covers:
- /api/invoices numbering, filters and payment date
- /api/payments PaymentIntents and the payments webhook
- /api/credits balance and transactions
"""

from datetime import date
import uuid

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql.expression import ColumnElement

from test_fixtures import (
    client,
    db_session,
    dietitian_headers,
    make_client,
    make_dietitian,
    stripe_event,
    stripe_signature,
)
from adapters import stripe_adapter
from app.config import settings
from domain.enums import CreditTransactionType, InvoiceStatus
from domain.models import DietitianCredits, Invoice
from domain.schemas import CreditTransactionCreate
from repositories import CreditsRepository
from services.credits_service import CreditsService
from services.invoice_service import invoice_prefix, to_cents


@pytest.fixture
def practice(db_session):
    dietitian = make_dietitian(db_session)
    record = make_client(db_session, dietitian)
    return dietitian, record


def _create_invoice(dietitian, record, **fields):
    body = {"client_id": str(record.id), "amount": 80, "description": "Consultation"}
    body.update(fields)
    return client.post("/api/invoices", json=body, headers=dietitian_headers(dietitian))


# =============================================================================
# INVOICES
# =============================================================================


def test_invoice_prefix_uses_year_and_month():
    assert invoice_prefix(date(2025, 3, 9)) == "INV-202503-"


@pytest.mark.parametrize(
    "amount, cents", [(80, 8000), (49.99, 4999), (0.015, 2), ("12.5", 1250)]
)
def test_to_cents_rounds_half_up(amount, cents):
    assert to_cents(amount) == cents


def test_invoices_are_numbered_sequentially(practice):
    dietitian, record = practice

    first = _create_invoice(dietitian, record)
    second = _create_invoice(dietitian, record, currency="EUR")

    assert first.status_code == 201
    prefix = invoice_prefix()
    assert first.json()["invoice_number"] == f"{prefix}0001"
    assert second.json()["invoice_number"] == f"{prefix}0002"
    assert second.json()["currency"] == "eur"
    assert first.json()["status"] == "draft"
    assert first.json()["issue_date"] == date.today().isoformat()


def test_numbering_is_per_dietitian(db_session, practice):
    dietitian, record = practice
    other = make_dietitian(db_session)
    other_client = make_client(db_session, other)
    _create_invoice(dietitian, record)

    response = _create_invoice(other, other_client)

    assert response.json()["invoice_number"].endswith("-0001")


def test_invoice_for_foreign_client_is_404(db_session, practice):
    dietitian, _ = practice
    stranger = make_client(db_session, make_dietitian(db_session))

    response = _create_invoice(dietitian, stranger)

    assert response.status_code == 404


@pytest.mark.parametrize("amount", [0, -10, 100001])
def test_invoice_amount_bounds(practice, amount):
    dietitian, record = practice
    assert _create_invoice(dietitian, record, amount=amount).status_code == 400


def test_marking_paid_sets_payment_date(practice):
    dietitian, record = practice
    invoice = _create_invoice(dietitian, record).json()
    headers = dietitian_headers(dietitian)

    sent = client.put(f"/api/invoices/{invoice['id']}", json={"status": "sent"}, headers=headers)
    paid = client.put(f"/api/invoices/{invoice['id']}", json={"status": "paid"}, headers=headers)

    assert sent.json()["payment_date"] is None
    assert paid.json()["status"] == "paid"
    assert paid.json()["payment_date"] is not None


def test_list_invoices_filters_by_status(practice):
    dietitian, record = practice
    headers = dietitian_headers(dietitian)
    _create_invoice(dietitian, record)
    _create_invoice(dietitian, record, status="sent")

    drafts = client.get("/api/invoices", params={"status": "draft"}, headers=headers)
    everything = client.get("/api/invoices", headers=headers)

    assert len(drafts.json()) == 1
    assert len(everything.json()) == 2


def test_invoices_cannot_be_deleted(practice):
    dietitian, record = practice
    invoice = _create_invoice(dietitian, record).json()

    response = client.delete(f"/api/invoices/{invoice['id']}", headers=dietitian_headers(dietitian))

    assert response.status_code == 405


# =============================================================================
# PAYMENTS
# =============================================================================


def test_create_payment_intent_for_invoice(db_session, practice, monkeypatch):
    dietitian, record = practice
    invoice = _create_invoice(dietitian, record).json()
    captured = {}

    def create_payment_intent(amount_cents, currency, metadata):
        captured.update(amount_cents=amount_cents, currency=currency, metadata=metadata)
        return {
            "id": "pi_123",
            "client_secret": "pi_123_secret",
            "amount": amount_cents,
            "currency": currency,
            "status": "requires_payment_method",
        }

    monkeypatch.setattr(stripe_adapter, "create_payment_intent", create_payment_intent)

    response = client.post(
        "/api/payments",
        json={"invoiceId": invoice["id"], "amount": 80.5},
        headers=dietitian_headers(dietitian),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["provider"] == "stripe"
    assert body["paymentIntent"]["client_secret"] == "pi_123_secret"
    assert captured["amount_cents"] == 8050
    assert captured["metadata"]["invoice_id"] == invoice["id"]
    stored = db_session.get(Invoice, uuid.UUID(invoice["id"]))
    assert stored.payment_intent_id == "pi_123"


def test_create_payment_requires_invoice_and_amount(practice):
    dietitian, _ = practice

    response = client.post("/api/payments", json={}, headers=dietitian_headers(dietitian))

    assert response.status_code == 400
    assert response.json()["error"] == "Invoice ID and amount are required"


def test_create_payment_for_unknown_invoice_is_404(practice):
    dietitian, _ = practice
    response = client.post(
        "/api/payments",
        json={"invoiceId": str(uuid.uuid4()), "amount": 10},
        headers=dietitian_headers(dietitian),
    )
    assert response.status_code == 404


def test_confirm_payment(practice, monkeypatch):
    dietitian, _ = practice
    monkeypatch.setattr(
        stripe_adapter,
        "retrieve_payment_intent",
        lambda pid: {"id": pid, "status": "succeeded", "amount": 100, "currency": "eur", "metadata": {}},
    )
    headers = dietitian_headers(dietitian)

    confirmed = client.get("/api/payments", params={"payment_intent_id": "pi_9"}, headers=headers)
    missing = client.get("/api/payments", headers=headers)

    assert confirmed.json()["success"] is True
    assert confirmed.json()["status"] == "succeeded"
    assert missing.status_code == 400


def _post_payment_webhook(payload: str):
    signature = stripe_signature(payload, settings.payments_webhook_secret)
    return client.post(
        "/api/payments/webhook",
        content=payload,
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
    )


def test_payment_webhook_marks_invoice_paid(db_session, practice):
    dietitian, record = practice
    invoice = _create_invoice(dietitian, record).json()
    payload = stripe_event(
        "payment_intent.succeeded",
        {"id": "pi_paid", "object": "payment_intent", "metadata": {"invoice_id": invoice["id"]}},
    )

    response = _post_payment_webhook(payload)

    assert response.status_code == 200
    assert response.json() == {"received": True}
    stored = db_session.get(Invoice, uuid.UUID(invoice["id"]))
    assert stored.status == InvoiceStatus.PAID
    assert stored.payment_date is not None
    assert stored.payment_intent_id == "pi_paid"


def test_payment_webhook_unknown_invoice_is_400():
    payload = stripe_event(
        "payment_intent.succeeded",
        {"id": "pi_x", "metadata": {"invoice_id": str(uuid.uuid4())}},
    )

    response = _post_payment_webhook(payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid invoice ID"


def test_payment_webhook_ignores_other_events():
    payload = stripe_event("payment_intent.created", {"id": "pi_new"})
    assert _post_payment_webhook(payload).json() == {"received": True}


def test_payment_webhook_uses_payments_secret():
    payload = stripe_event("payment_intent.created", {"id": "pi_new"})
    signature = stripe_signature(payload, settings.stripe_webhook_secret)

    response = client.post(
        "/api/payments/webhook", content=payload, headers={"Stripe-Signature": signature}
    )

    assert response.status_code == 400


# =============================================================================
# CREDITS
# =============================================================================


def test_credits_are_created_on_first_access(practice):
    dietitian, _ = practice

    response = client.get("/api/credits", headers=dietitian_headers(dietitian))

    assert response.status_code == 200
    assert response.json()["credits"]["credits_balance"] == 0
    assert response.json()["transactions"] == []


def test_earn_then_spend_credits(practice):
    dietitian, _ = practice
    headers = dietitian_headers(dietitian)

    earned = client.post(
        "/api/credits", json={"transaction_type": "earn", "amount": 10}, headers=headers
    )
    spent = client.post(
        "/api/credits",
        json={"transaction_type": "spend", "amount": 4, "description": "Plan IA"},
        headers=headers,
    )

    assert earned.status_code == 201
    assert earned.json()["credits"]["credits_balance"] == 10
    assert spent.json()["credits"] == {
        **spent.json()["credits"],
        "credits_balance": 6,
        "total_earned": 10,
        "total_spent": 4,
    }
    assert spent.json()["transaction"]["transaction_type"] == "spend"

    listed = client.get("/api/credits", headers=headers)
    assert len(listed.json()["transactions"]) == 2


def test_spending_more_than_balance_is_refused(practice):
    dietitian, _ = practice

    response = client.post(
        "/api/credits",
        json={"transaction_type": "spend", "amount": 1},
        headers=dietitian_headers(dietitian),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Insufficient credits"


@pytest.mark.parametrize(
    "body, error",
    [
        ({"transaction_type": "earn"}, "Invalid transaction data"),
        ({"transaction_type": "earn", "amount": 0}, "Invalid transaction data"),
        ({"transaction_type": "gift", "amount": 5}, "Invalid transaction type"),
    ],
)
def test_invalid_credit_transactions(practice, body, error):
    dietitian, _ = practice
    response = client.post("/api/credits", json=body, headers=dietitian_headers(dietitian))
    assert response.status_code == 400
    assert response.json()["error"] == error


def test_balance_updates_are_applied_by_the_database(db_session, practice):
    dietitian, _ = practice
    stale = CreditsRepository(db_session).get_or_create(dietitian.id)
    assert stale.credits_balance == 0

    # Another request earns credits after this session read the balance
    client.post(
        "/api/credits",
        json={"transaction_type": "earn", "amount": 10},
        headers=dietitian_headers(dietitian),
    )
    result = CreditsService.record_transaction(
        db_session, dietitian.id, CreditTransactionCreate(transaction_type="earn", amount=5)
    )

    assert result["credits"].credits_balance == 15
    assert result["credits"].total_earned == 15


def test_apply_emits_column_arithmetic():
    credits = DietitianCredits(credits_balance=8, total_earned=8, total_spent=0)

    CreditsService.apply(credits, CreditTransactionType.SPEND, 3)

    assert isinstance(credits.credits_balance, ColumnElement)
    assert "credits_balance -" in str(credits.credits_balance)


def test_negative_balance_is_rejected_by_the_database(db_session, practice):
    dietitian, _ = practice
    db_session.add(DietitianCredits(dietitian_id=dietitian.id, credits_balance=-1))

    with pytest.raises(IntegrityError):
        db_session.commit()
