"""
Client invoices and their card payments through Stripe PaymentIntents.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from adapters import stripe_adapter
from app.config import settings
from app.exceptions import NotFoundError, NutriFlowError, ServiceValidationError
from domain.enums import InvoiceStatus
from domain.models import Invoice, utcnow
from domain.schemas import InvoiceCreate, InvoiceUpdate
from repositories import ClientRepository, InvoiceRepository

logger = logging.getLogger("nutriflow.services.invoices")

NUMBERING_ATTEMPTS = 3


def invoice_prefix(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"INV-{today.strftime('%Y%m')}-"


def to_cents(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class InvoiceService:
    @staticmethod
    def list_invoices(
        db: Session,
        dietitian_id: uuid.UUID,
        client_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
    ) -> List[Invoice]:
        return InvoiceRepository(db).list_for_dietitian(dietitian_id, client_id=client_id, status=status)

    @staticmethod
    def get_invoice(db: Session, dietitian_id: uuid.UUID, invoice_id: uuid.UUID) -> Invoice:
        invoice = InvoiceRepository(db).get_for_dietitian(dietitian_id, invoice_id)
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice

    @staticmethod
    def create_invoice(db: Session, dietitian_id: uuid.UUID, payload: InvoiceCreate) -> Invoice:
        """Create an invoice numbered ``INV-YYYYMM-NNNN`` (sequence per dietitian and month)."""
        if not ClientRepository(db).get_for_dietitian(dietitian_id, payload.client_id):
            raise NotFoundError(f"Client not found: {payload.client_id}")

        repo = InvoiceRepository(db)
        prefix = invoice_prefix()
        data = payload.model_dump()
        data["currency"] = data["currency"].lower()
        data["issue_date"] = data.get("issue_date") or date.today()

        for attempt in range(NUMBERING_ATTEMPTS):
            sequence = repo.count_with_prefix(dietitian_id, prefix) + 1 + attempt
            invoice = Invoice(
                dietitian_id=dietitian_id,
                invoice_number=f"{prefix}{sequence:04d}",
                **data,
            )
            try:
                invoice = repo.create(invoice)
                logger.info(f"Created invoice {invoice.invoice_number}")
                return invoice
            except IntegrityError:
                db.rollback()
                logger.warning(f"Invoice number {invoice.invoice_number} taken; retrying")
        raise NutriFlowError("Could not allocate an invoice number")

    @staticmethod
    def update_invoice(
        db: Session, dietitian_id: uuid.UUID, invoice_id: uuid.UUID, payload: InvoiceUpdate
    ) -> Invoice:
        invoice = InvoiceService.get_invoice(db, dietitian_id, invoice_id)
        changes = payload.model_dump(exclude_unset=True)
        for key, value in changes.items():
            setattr(invoice, key, value)
        if changes.get("status") == InvoiceStatus.PAID and invoice.payment_date is None:
            invoice.payment_date = utcnow()
        return InvoiceRepository(db).update(invoice)


class PaymentService:
    @staticmethod
    def create_payment(
        db: Session,
        dietitian_id: uuid.UUID,
        invoice_id: Optional[uuid.UUID],
        amount: Optional[float],
        currency: str = "eur",
    ) -> Dict[str, Any]:
        if not invoice_id or not amount:
            raise ServiceValidationError("Invoice ID and amount are required")
        invoice = InvoiceService.get_invoice(db, dietitian_id, invoice_id)

        intent = stripe_adapter.create_payment_intent(
            amount_cents=to_cents(amount),
            currency=currency.lower(),
            metadata={"invoice_id": str(invoice.id), "dietitian_id": str(dietitian_id)},
        )
        invoice.payment_intent_id = intent["id"]
        InvoiceRepository(db).update(invoice)
        logger.info(f"Payment intent {intent['id']} created for invoice {invoice.id}")
        return {
            "success": True,
            "paymentIntent": intent,
            "provider": stripe_adapter.PROVIDER_NAME,
        }

    @staticmethod
    def confirm_payment(payment_intent_id: Optional[str]) -> Dict[str, Any]:
        if not payment_intent_id:
            raise ServiceValidationError("Payment intent ID is required")
        intent = stripe_adapter.retrieve_payment_intent(payment_intent_id)
        return {
            "success": intent["status"] == "succeeded",
            "status": intent["status"],
            "paymentIntent": intent,
        }

    @staticmethod
    def handle_webhook(db: Session, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Mark the invoice referenced by a succeeded PaymentIntent as paid.

        Raises:
            ServiceValidationError: missing/invalid signature or unknown invoice
        """
        if not signature:
            raise ServiceValidationError("No signature", code="MISSING_SIGNATURE")
        secret = settings.payments_webhook_secret
        if not secret:
            logger.error("No webhook secret configured for payments")
            raise NutriFlowError("Webhook secret not configured")

        event = stripe_adapter.construct_event(payload, signature, secret)
        if event.get("type") != "payment_intent.succeeded":
            return {"received": True}

        intent = (event.get("data") or {}).get("object") or {}
        invoice_id = (intent.get("metadata") or {}).get("invoice_id")
        if not invoice_id:
            return {"received": True}

        try:
            invoice = InvoiceRepository(db).get_by_id(uuid.UUID(str(invoice_id)))
        except ValueError:
            invoice = None
        if invoice is None:
            raise ServiceValidationError("Invalid invoice ID")

        invoice.status = InvoiceStatus.PAID
        invoice.payment_date = utcnow()
        invoice.payment_intent_id = intent.get("id") or invoice.payment_intent_id
        InvoiceRepository(db).update(invoice)
        logger.info(f"Invoice {invoice.id} paid via {intent.get('id')}")
        return {"received": True}
