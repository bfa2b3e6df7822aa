from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import TenantRepository
from domain.models import Document


class DocumentRepository(TenantRepository[Document]):
    """Repository for document metadata"""

    def __init__(self, db: Session):
        super().__init__(db, Document)

    def list_visible_for_client(self, client_id: UUID) -> List[Document]:
        return (
            self.db.query(Document)
            .filter(Document.client_id == client_id, Document.is_visible_to_client.is_(True))
            .order_by(Document.upload_date.desc())
            .all()
        )

    def get_visible_for_client(self, client_id: UUID, document_id: UUID) -> Optional[Document]:
        return (
            self.db.query(Document)
            .filter(
                Document.id == document_id,
                Document.client_id == client_id,
                Document.is_visible_to_client.is_(True),
            )
            .first()
        )

    def list_for_client(self, client_id: UUID) -> List[Document]:
        return (
            self.db.query(Document)
            .filter(Document.client_id == client_id)
            .order_by(Document.upload_date.desc())
            .all()
        )
