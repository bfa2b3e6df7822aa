from typing import Any, Dict
import logging
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import ServiceValidationError
from domain.enums import CreditTransactionType
from domain.models import CreditTransaction, DietitianCredits
from domain.schemas import CreditTransactionCreate
from repositories import CreditsRepository, CreditTransactionRepository

logger = logging.getLogger("nutriflow.services.credits")

RECENT_TRANSACTIONS = 20


class CreditsService:
    @staticmethod
    def get_credits(db: Session, dietitian_id: uuid.UUID) -> Dict[str, Any]:
        credits = CreditsRepository(db).get_or_create(dietitian_id)
        transactions = CreditTransactionRepository(db).list_recent(dietitian_id, RECENT_TRANSACTIONS)
        return {"credits": credits, "transactions": transactions}

    @staticmethod
    def apply(credits: DietitianCredits, kind: CreditTransactionType, amount: int) -> None:
        """Queue the balance change as column arithmetic, evaluated by the database on flush."""
        if kind == CreditTransactionType.SPEND:
            credits.credits_balance = DietitianCredits.credits_balance - amount
            credits.total_spent = DietitianCredits.total_spent + amount
        else:
            credits.credits_balance = DietitianCredits.credits_balance + amount
            credits.total_earned = DietitianCredits.total_earned + amount

    @staticmethod
    def record_transaction(
        db: Session, dietitian_id: uuid.UUID, payload: CreditTransactionCreate
    ) -> Dict[str, Any]:
        """
        Record a credit movement and update the balance in the same commit.

        Raises:
            ServiceValidationError: missing/non-positive amount, unknown type,
                or a spend larger than the balance
        """
        if not payload.transaction_type or not payload.amount or payload.amount <= 0:
            raise ServiceValidationError("Invalid transaction data")
        try:
            kind = CreditTransactionType(payload.transaction_type)
        except ValueError:
            raise ServiceValidationError("Invalid transaction type")

        repo = CreditsRepository(db)
        repo.get_or_create(dietitian_id)
        credits = repo.lock_for_dietitian(dietitian_id)
        if kind == CreditTransactionType.SPEND and credits.credits_balance < payload.amount:
            raise ServiceValidationError("Insufficient credits")

        transaction = CreditTransaction(
            dietitian_id=dietitian_id,
            transaction_type=kind,
            amount=payload.amount,
            description=payload.description,
            reference_id=payload.reference_id,
            reference_type=payload.reference_type,
        )
        try:
            db.add(transaction)
            CreditsService.apply(credits, kind, payload.amount)
            db.commit()
        except IntegrityError:
            # balance check constraint: a concurrent spend got there first
            db.rollback()
            raise ServiceValidationError("Insufficient credits")
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Credit transaction failed for dietitian {dietitian_id}")
            raise
        db.refresh(transaction)
        db.refresh(credits)
        logger.info(f"{kind.value} {payload.amount} credits for dietitian {dietitian_id}")
        return {"transaction": transaction, "credits": credits}
