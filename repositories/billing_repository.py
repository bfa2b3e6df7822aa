"""
Billing Repository - subscription catalog/events, invoices and credits
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository, TenantRepository
from domain.models import (
    SubscriptionPlan,
    SubscriptionEvent,
    Invoice,
    DietitianCredits,
    CreditTransaction,
)


class SubscriptionPlanRepository(BaseRepository[SubscriptionPlan]):
    def __init__(self, db: Session):
        super().__init__(db, SubscriptionPlan)

    def list_active(self) -> List[SubscriptionPlan]:
        return (
            self.db.query(SubscriptionPlan)
            .filter(SubscriptionPlan.is_active.is_(True))
            .order_by(SubscriptionPlan.sort_order)
            .all()
        )

    def get_by_name(self, name: str) -> Optional[SubscriptionPlan]:
        return self.db.query(SubscriptionPlan).filter(SubscriptionPlan.name == name).first()

    def get_by_price_id(self, price_id: str) -> Optional[SubscriptionPlan]:
        return (
            self.db.query(SubscriptionPlan)
            .filter(SubscriptionPlan.stripe_price_id == price_id)
            .first()
        )


class SubscriptionEventRepository(TenantRepository[SubscriptionEvent]):
    def __init__(self, db: Session):
        super().__init__(db, SubscriptionEvent)

    def list_for_dietitian(self, dietitian_id: UUID) -> List[SubscriptionEvent]:
        return (
            self.query_for_dietitian(dietitian_id)
            .order_by(SubscriptionEvent.created_at.desc())
            .all()
        )


class InvoiceRepository(TenantRepository[Invoice]):
    def __init__(self, db: Session):
        super().__init__(db, Invoice)

    def list_for_dietitian(
        self,
        dietitian_id: UUID,
        client_id: Optional[UUID] = None,
        status: Optional[str] = None,
    ) -> List[Invoice]:
        query = self.query_for_dietitian(dietitian_id)
        if client_id:
            query = query.filter(Invoice.client_id == client_id)
        if status:
            query = query.filter(Invoice.status == status)
        return query.order_by(Invoice.created_at.desc()).all()

    def count_with_prefix(self, dietitian_id: UUID, prefix: str) -> int:
        return (
            self.query_for_dietitian(dietitian_id)
            .filter(Invoice.invoice_number.like(f"{prefix}%"))
            .count()
        )


class CreditsRepository(BaseRepository[DietitianCredits]):
    def __init__(self, db: Session):
        super().__init__(db, DietitianCredits)

    def get_for_dietitian(self, dietitian_id: UUID) -> Optional[DietitianCredits]:
        return (
            self.db.query(DietitianCredits)
            .filter(DietitianCredits.dietitian_id == dietitian_id)
            .first()
        )

    def get_or_create(self, dietitian_id: UUID) -> DietitianCredits:
        credits = self.get_for_dietitian(dietitian_id)
        if credits is None:
            credits = DietitianCredits(
                dietitian_id=dietitian_id,
                credits_balance=0,
                total_earned=0,
                total_spent=0,
            )
            self.db.add(credits)
            self.db.commit()
            self.db.refresh(credits)
        return credits

    def lock_for_dietitian(self, dietitian_id: UUID) -> Optional[DietitianCredits]:
        """Re-read the balance row under a row lock (FOR UPDATE where supported)."""
        return (
            self.db.query(DietitianCredits)
            .filter(DietitianCredits.dietitian_id == dietitian_id)
            .with_for_update()
            .populate_existing()
            .first()
        )


class CreditTransactionRepository(TenantRepository[CreditTransaction]):
    def __init__(self, db: Session):
        super().__init__(db, CreditTransaction)

    def list_recent(self, dietitian_id: UUID, limit: int = 20) -> List[CreditTransaction]:
        return (
            self.query_for_dietitian(dietitian_id)
            .order_by(CreditTransaction.created_at.desc())
            .limit(limit)
            .all()
        )
