"""
Document model (file metadata; bytes live in object storage).
"""

from sqlalchemy import Column, Text, DateTime, ForeignKey, Integer, Boolean, JSON, Uuid
import uuid

from domain.models.database import Base, utcnow, enum_column
from domain.enums import DocumentCategory


class Document(Base):
    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(Text, nullable=False)
    file_path = Column(Text, nullable=False)
    file_size = Column(Integer)
    mime_type = Column(Text)
    category = Column(
        enum_column(DocumentCategory), nullable=False, default=DocumentCategory.GENERAL
    )
    description = Column(Text)
    is_visible_to_client = Column(Boolean, nullable=False, default=True)
    # "metadata" is reserved on declarative classes
    extra = Column("metadata", JSON, default=dict)
    upload_date = Column(DateTime(timezone=True), default=utcnow, index=True)
