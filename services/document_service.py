"""
Client documents: metadata rows in ``documents``, bytes in object storage.
"""

from typing import Any, Dict, List, Optional, Tuple
import logging
import os
import re
import time
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adapters import storage_adapter
from app.exceptions import NotFoundError, NutriFlowError, ServiceValidationError
from domain.enums import DocumentCategory
from domain.models import Document, as_utc, utcnow
from repositories import ClientRepository, DocumentRepository

logger = logging.getLogger("nutriflow.services.documents")

PHOTO_MIME_TYPES = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}
MAX_PHOTO_BYTES = 5 * 1024 * 1024
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_filename(filename: Optional[str]) -> str:
    name = os.path.basename(filename or "file")
    return _UNSAFE_FILENAME.sub("_", name).strip("._") or "file"


def _extension(filename: Optional[str], content_type: str) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return PHOTO_MIME_TYPES.get(content_type, "bin")


class DocumentService:
    @staticmethod
    def list_for_portal(db: Session, client_id: uuid.UUID) -> List[Document]:
        return DocumentRepository(db).list_visible_for_client(client_id)

    @staticmethod
    def download_for_portal(
        db: Session, client_id: uuid.UUID, document_id: uuid.UUID
    ) -> Tuple[Document, bytes]:
        document = DocumentRepository(db).get_visible_for_client(client_id, document_id)
        if not document:
            raise NotFoundError("Document not found or not accessible")
        return document, storage_adapter.download(document.file_path)

    @staticmethod
    def upload_progress_photo(
        db: Session,
        client_id: uuid.UUID,
        filename: Optional[str],
        content_type: Optional[str],
        data: Optional[bytes],
        visible_to_nutritionist: bool,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Store a progress photo uploaded from the portal.

        The bytes are uploaded first; if the document row cannot be written
        the stored object is removed again.

        Raises:
            ServiceValidationError: no photo, unsupported type, or larger than 5 MB
            NotFoundError: the client no longer exists
        """
        if not data:
            raise ServiceValidationError("No photo provided")
        if content_type not in PHOTO_MIME_TYPES:
            raise ServiceValidationError("Invalid file type")
        if len(data) > MAX_PHOTO_BYTES:
            raise ServiceValidationError("File too large")

        client = ClientRepository(db).get_by_id(client_id)
        if not client:
            raise NotFoundError("Client not found")

        now = utcnow()
        timestamp = int(time.time() * 1000)
        file_path = f"documents/progress_{client_id}_{timestamp}.{_extension(filename, content_type)}"
        storage_adapter.upload(file_path, data, content_type)

        document = Document(
            client_id=client_id,
            dietitian_id=client.dietitian_id,
            name=f"Photo de progrès - {now.strftime('%d/%m/%Y')}",
            file_path=file_path,
            file_size=len(data),
            mime_type=content_type,
            category=DocumentCategory.PHOTO,
            description=notes or "Photo de progrès ajoutée par le client",
            is_visible_to_client=True,
            extra={
                "type": "progress_photo",
                "uploaded_by": "client",
                "weight_entry": True,
                "visible_to_nutritionist": visible_to_nutritionist,
            },
        )
        try:
            document = DocumentRepository(db).create(document)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception(f"Document record for {file_path} failed; removing upload")
            storage_adapter.remove(file_path)
            raise NutriFlowError("Failed to create document record") from exc

        return {
            "id": str(document.id),
            "name": document.name,
            "uploadDate": as_utc(document.upload_date).isoformat(),
            "isVisibleToNutritionist": visible_to_nutritionist,
        }

    # ------------------------------------------------------------------
    # Dietitian side
    # ------------------------------------------------------------------

    @staticmethod
    def list_for_client(db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID) -> List[Document]:
        if not ClientRepository(db).get_for_dietitian(dietitian_id, client_id):
            raise NotFoundError(f"Client not found: {client_id}")
        return DocumentRepository(db).list_for_client(client_id)

    @staticmethod
    def upload_for_client(
        db: Session,
        dietitian_id: uuid.UUID,
        client_id: uuid.UUID,
        filename: Optional[str],
        content_type: Optional[str],
        data: Optional[bytes],
        category: DocumentCategory = DocumentCategory.GENERAL,
        description: Optional[str] = None,
        is_visible_to_client: bool = True,
    ) -> Document:
        if not ClientRepository(db).get_for_dietitian(dietitian_id, client_id):
            raise NotFoundError(f"Client not found: {client_id}")
        if not data:
            raise ServiceValidationError("No file provided")
        if len(data) > MAX_DOCUMENT_BYTES:
            raise ServiceValidationError("File too large")

        content_type = content_type or "application/octet-stream"
        safe_name = _safe_filename(filename)
        file_path = f"documents/{client_id}_{int(time.time() * 1000)}_{safe_name}"
        storage_adapter.upload(file_path, data, content_type)

        document = Document(
            client_id=client_id,
            dietitian_id=dietitian_id,
            name=filename or safe_name,
            file_path=file_path,
            file_size=len(data),
            mime_type=content_type,
            category=category,
            description=description,
            is_visible_to_client=is_visible_to_client,
            extra={"uploaded_by": "dietitian"},
        )
        try:
            return DocumentRepository(db).create(document)
        except SQLAlchemyError:
            db.rollback()
            storage_adapter.remove(file_path)
            raise

    @staticmethod
    def delete_document(db: Session, dietitian_id: uuid.UUID, document_id: uuid.UUID) -> None:
        repo = DocumentRepository(db)
        document = repo.get_for_dietitian(dietitian_id, document_id)
        if not document:
            raise NotFoundError(f"Document not found: {document_id}")
        file_path = document.file_path
        repo.delete_entity(document)
        storage_adapter.remove(file_path)
        logger.info(f"Deleted document {document_id}")
