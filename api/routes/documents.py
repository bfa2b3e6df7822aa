"""Document routes not nested under a client"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from domain.models import Dietitian
from services import DocumentService

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.delete("/{document_id}")
def delete_document(
    document_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Delete the record and the stored file."""
    DocumentService.delete_document(db, dietitian.id, document_id)
    return {"success": True, "deleted": str(document_id)}
