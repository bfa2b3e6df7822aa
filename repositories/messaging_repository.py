"""
Messaging Repository - conversations and messages
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Conversation, Message
from domain.enums import SenderType


class ConversationRepository(BaseRepository[Conversation]):
    def __init__(self, db: Session):
        super().__init__(db, Conversation)

    def get_for_pair(self, client_id: UUID, dietitian_id: UUID) -> Optional[Conversation]:
        return (
            self.db.query(Conversation)
            .filter(
                Conversation.client_id == client_id,
                Conversation.dietitian_id == dietitian_id,
            )
            .first()
        )

    def get_or_create(self, client_id: UUID, dietitian_id: UUID) -> Conversation:
        conversation = self.get_for_pair(client_id, dietitian_id)
        if conversation is None:
            conversation = Conversation(
                client_id=client_id,
                dietitian_id=dietitian_id,
                subject="Messages avec le client",
                status="active",
            )
            self.db.add(conversation)
            self.db.flush()
        return conversation


class MessageRepository(BaseRepository[Message]):
    def __init__(self, db: Session):
        super().__init__(db, Message)

    def list_for_client(self, client_id: UUID, limit: Optional[int] = None) -> List[Message]:
        """Newest first"""
        query = (
            self.db.query(Message)
            .filter(Message.client_id == client_id)
            .order_by(Message.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def mark_client_messages_read(self, client_id: UUID) -> int:
        count = (
            self.db.query(Message)
            .filter(
                Message.client_id == client_id,
                Message.sender_type == SenderType.CLIENT,
                Message.is_read.is_(False),
            )
            .update({Message.is_read: True}, synchronize_session=False)
        )
        self.db.flush()
        return count

    def delete_for_client(self, client_id: UUID) -> int:
        count = self.db.query(Message).filter(Message.client_id == client_id).delete()
        self.db.flush()
        return count
