"""
Security Repository - tracked dietitian sessions
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import TenantRepository
from domain.models import UserSession, utcnow


class UserSessionRepository(TenantRepository[UserSession]):
    def __init__(self, db: Session):
        super().__init__(db, UserSession)

    def get_by_auth_session(
        self, dietitian_id: UUID, auth_session_id: str
    ) -> Optional[UserSession]:
        return (
            self.query_for_dietitian(dietitian_id)
            .filter(UserSession.auth_session_id == auth_session_id)
            .first()
        )

    def list_active(self, dietitian_id: UUID) -> List[UserSession]:
        return (
            self.query_for_dietitian(dietitian_id)
            .filter(UserSession.is_active.is_(True))
            .order_by(UserSession.last_activity.desc())
            .all()
        )

    def revoke_all_except(self, dietitian_id: UUID, keep_id: Optional[UUID]) -> int:
        query = self.query_for_dietitian(dietitian_id).filter(UserSession.is_active.is_(True))
        if keep_id is not None:
            query = query.filter(UserSession.id != keep_id)
        count = query.update(
            {UserSession.is_active: False, UserSession.ended_at: utcnow()},
            synchronize_session=False,
        )
        self.db.commit()
        return count
