"""
Signed-in dietitian sessions, keyed by the hosted-auth ``session_id`` claim.
"""

from sqlalchemy import (
    Column,
    Text,
    DateTime,
    ForeignKey,
    Boolean,
    JSON,
    Uuid,
    UniqueConstraint,
)
import uuid

from domain.models.database import Base, utcnow


class UserSession(Base):
    __tablename__ = "user_sessions"
    __table_args__ = (UniqueConstraint("dietitian_id", "auth_session_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    auth_session_id = Column(Text, nullable=False)
    device_info = Column(JSON)
    ip_address = Column(Text)
    user_agent = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    last_activity = Column(DateTime(timezone=True), default=utcnow, index=True)
    ended_at = Column(DateTime(timezone=True))
