"""
Conversation and message models.
"""

from sqlalchemy import (
    Column,
    Text,
    DateTime,
    ForeignKey,
    Integer,
    Boolean,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow, enum_column
from domain.enums import SenderType


class Conversation(Base):
    """One thread per (client, dietitian) pair"""

    __tablename__ = "conversations"
    __table_args__ = (UniqueConstraint("client_id", "dietitian_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False
    )
    subject = Column(Text)
    status = Column(Text, nullable=False, default="active")
    last_message_at = Column(DateTime(timezone=True))
    # Messages from the client not yet read by the dietitian
    unread_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    messages = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan"
    )


class Message(Base):
    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False
    )
    sender_type = Column(enum_column(SenderType), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(Text, nullable=False, default="text")
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    conversation = relationship("Conversation", back_populates="messages")
