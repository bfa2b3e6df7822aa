from typing import List
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from domain.enums import SenderType
from domain.models import Message, utcnow
from repositories import ClientRepository, ConversationRepository, MessageRepository

logger = logging.getLogger("nutriflow.services.messaging")


class MessagingService:
    @staticmethod
    def send_message(
        db: Session, client_id: uuid.UUID, content: str, sender: SenderType
    ) -> Message:
        """
        Append a message to the client's conversation with their dietitian,
        creating the conversation on first use.

        Messages sent by the client bump the conversation's unread counter.
        """
        client = ClientRepository(db).get_by_id(client_id)
        if not client:
            raise NotFoundError("Client non trouvé")

        try:
            conversation = ConversationRepository(db).get_or_create(
                client_id, client.dietitian_id
            )
            message = Message(
                conversation_id=conversation.id,
                client_id=client_id,
                dietitian_id=client.dietitian_id,
                sender_type=sender,
                content=content,
                message_type="text",
                is_read=False,
            )
            db.add(message)
            conversation.last_message_at = utcnow()
            if sender == SenderType.CLIENT:
                conversation.unread_count = (conversation.unread_count or 0) + 1
            db.commit()
            db.refresh(message)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to send message for client {client_id}")
            raise
        logger.info(f"{sender.value} message {message.id} stored for client {client_id}")
        return message

    @staticmethod
    def list_for_dietitian(
        db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID
    ) -> List[Message]:
        """
        Conversation history for one of the dietitian's clients, oldest first.
        Opening the thread marks the client's messages as read.
        """
        client = ClientRepository(db).get_for_dietitian(dietitian_id, client_id)
        if not client:
            raise NotFoundError(f"Client not found: {client_id}")

        message_repo = MessageRepository(db)
        message_repo.mark_client_messages_read(client_id)
        conversation = ConversationRepository(db).get_for_pair(client_id, dietitian_id)
        if conversation is not None:
            conversation.unread_count = 0
        db.commit()
        return list(reversed(message_repo.list_for_client(client_id)))

    @staticmethod
    def send_from_dietitian(
        db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID, content: str
    ) -> Message:
        client = ClientRepository(db).get_for_dietitian(dietitian_id, client_id)
        if not client:
            raise NotFoundError(f"Client not found: {client_id}")
        return MessagingService.send_message(db, client_id, content, SenderType.DIETITIAN)
