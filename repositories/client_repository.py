"""
Client Repository - Data access layer for clients, portal accounts and weight history
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from repositories.base import BaseRepository, TenantRepository
from domain.models import Client, ClientAccount, WeightEntry
from app.exceptions import ConflictError


class ClientRepository(TenantRepository[Client]):
    """Repository for client data access"""

    def __init__(self, db: Session):
        super().__init__(db, Client)

    def list_for_dietitian(
        self,
        dietitian_id: UUID,
        status: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Client]:
        query = self.query_for_dietitian(dietitian_id)
        if status:
            query = query.filter(Client.status == status)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(Client.name.ilike(pattern), Client.email.ilike(pattern))
            )
        return query.order_by(Client.name).offset(skip).limit(limit).all()


class ClientAccountRepository(BaseRepository[ClientAccount]):
    """Repository for client portal accounts"""

    def __init__(self, db: Session):
        super().__init__(db, ClientAccount)

    def get_active_by_email(self, email: str) -> Optional[ClientAccount]:
        return (
            self.db.query(ClientAccount)
            .filter(ClientAccount.email == email.lower(), ClientAccount.is_active.is_(True))
            .first()
        )

    def get_by_client_id(self, client_id: UUID) -> Optional[ClientAccount]:
        return (
            self.db.query(ClientAccount)
            .filter(ClientAccount.client_id == client_id)
            .first()
        )

    def get_active_by_client_id(self, client_id: UUID) -> Optional[ClientAccount]:
        return (
            self.db.query(ClientAccount)
            .filter(ClientAccount.client_id == client_id, ClientAccount.is_active.is_(True))
            .first()
        )

    def create_account(self, client_id: UUID, email: str, password_hash: str) -> ClientAccount:
        account = ClientAccount(
            client_id=client_id, email=email.lower(), password_hash=password_hash
        )
        try:
            self.db.add(account)
            self.db.commit()
            self.db.refresh(account)
            return account
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"A portal account already uses {email}")


class WeightEntryRepository(BaseRepository[WeightEntry]):
    def __init__(self, db: Session):
        super().__init__(db, WeightEntry)

    def list_for_client(self, client_id: UUID, limit: Optional[int] = None) -> List[WeightEntry]:
        """Newest first"""
        query = (
            self.db.query(WeightEntry)
            .filter(WeightEntry.client_id == client_id)
            .order_by(WeightEntry.recorded_date.desc(), WeightEntry.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def get_earliest(self, client_id: UUID) -> Optional[WeightEntry]:
        return (
            self.db.query(WeightEntry)
            .filter(WeightEntry.client_id == client_id)
            .order_by(WeightEntry.recorded_date.asc(), WeightEntry.created_at.asc())
            .first()
        )

    def delete_for_client(self, client_id: UUID) -> int:
        count = (
            self.db.query(WeightEntry).filter(WeightEntry.client_id == client_id).delete()
        )
        self.db.flush()
        return count
