"""
Dietitian Repository - Data access layer for tenant accounts
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from repositories.base import BaseRepository
from domain.models import Dietitian
from app.exceptions import ConflictError


class DietitianRepository(BaseRepository[Dietitian]):
    """Repository for dietitian data access"""

    def __init__(self, db: Session):
        super().__init__(db, Dietitian)

    def get_by_auth_user_id(self, auth_user_id: UUID) -> Optional[Dietitian]:
        """Resolve the dietitian behind a hosted-auth subject"""
        return (
            self.db.query(Dietitian)
            .filter(Dietitian.auth_user_id == auth_user_id)
            .first()
        )

    def get_by_stripe_customer_id(self, customer_id: str) -> Optional[Dietitian]:
        return (
            self.db.query(Dietitian)
            .filter(Dietitian.stripe_customer_id == customer_id)
            .first()
        )

    def get_by_subscription_id(self, subscription_id: str) -> Optional[Dietitian]:
        return (
            self.db.query(Dietitian)
            .filter(Dietitian.subscription_id == subscription_id)
            .first()
        )

    def create_dietitian(self, auth_user_id: UUID, email: str, **kwargs) -> Dietitian:
        dietitian = Dietitian(auth_user_id=auth_user_id, email=email, **kwargs)
        try:
            self.db.add(dietitian)
            self.db.commit()
            self.db.refresh(dietitian)
            return dietitian
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Dietitian with email {email} already exists")
