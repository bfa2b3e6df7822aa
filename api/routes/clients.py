"""Client management routes (dietitian workspace)"""

from typing import List, Optional
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from domain.enums import ClientStatus, DocumentCategory
from domain.models import Dietitian
from domain.schemas import (
    ClientAccountResponse,
    ClientCreate,
    ClientResponse,
    ClientUpdate,
    DietitianMessageCreate,
    DocumentResponse,
    MessageResponse,
    WeightEntryResponse,
)
from services import ClientAuthService, ClientService, DocumentService, MessagingService

router = APIRouter(prefix="/clients", tags=["Clients"])
logger = logging.getLogger("nutriflow.api.clients")


@router.get("", response_model=List[ClientResponse])
def list_clients(
    status_filter: Optional[ClientStatus] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None, max_length=100),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """List the dietitian's clients, optionally filtered by status or name/email."""
    return ClientService.list_clients(
        db, dietitian.id, status=status_filter.value if status_filter else None, search=search
    )


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return ClientService.create_client(db, dietitian, payload)


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(
    client_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return ClientService.get_client(db, dietitian.id, client_id)


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: UUID,
    payload: ClientUpdate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return ClientService.update_client(db, dietitian.id, client_id, payload)


@router.delete("/{client_id}")
def delete_client(
    client_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    ClientService.delete_client(db, dietitian.id, client_id)
    return {"success": True, "deleted": str(client_id)}


# ============================================================================
# Portal account
# ============================================================================


@router.post(
    "/{client_id}/account",
    response_model=ClientAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_portal_account(
    client_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Create or reset the client's portal login; the temporary password is only returned here."""
    account, temporary_password = ClientAuthService.create_portal_account(
        db, dietitian.id, client_id
    )
    return ClientAccountResponse(
        account_id=account.id,
        client_id=account.client_id,
        email=account.email,
        is_active=account.is_active,
        temporary_password=temporary_password,
    )


@router.delete("/{client_id}/account", response_model=ClientAccountResponse)
def deactivate_portal_account(
    client_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    account = ClientAuthService.deactivate_portal_account(db, dietitian.id, client_id)
    return ClientAccountResponse(
        account_id=account.id,
        client_id=account.client_id,
        email=account.email,
        is_active=account.is_active,
    )


# ============================================================================
# Weight, messages, documents
# ============================================================================


@router.get("/{client_id}/weight", response_model=List[WeightEntryResponse])
def get_weight_history(
    client_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return ClientService.get_weight_history(db, dietitian.id, client_id)


@router.get("/{client_id}/messages", response_model=List[MessageResponse])
def list_messages(
    client_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Conversation with the client, oldest first; marks the client's messages read."""
    return MessagingService.list_for_dietitian(db, dietitian.id, client_id)


@router.post(
    "/{client_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    client_id: UUID,
    payload: DietitianMessageCreate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return MessagingService.send_from_dietitian(
        db, dietitian.id, client_id, payload.message.strip()
    )


@router.get("/{client_id}/documents", response_model=List[DocumentResponse])
def list_documents(
    client_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return DocumentService.list_for_client(db, dietitian.id, client_id)


@router.post(
    "/{client_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_document(
    client_id: UUID,
    file: Optional[UploadFile] = File(default=None),
    category: DocumentCategory = Form(default=DocumentCategory.GENERAL),
    description: Optional[str] = Form(default=None, max_length=1000),
    is_visible_to_client: bool = Form(default=True),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Multipart upload of a document shared with the client (max 10 MB)."""
    return DocumentService.upload_for_client(
        db,
        dietitian.id,
        client_id,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        data=file.file.read() if file is not None else None,
        category=category,
        description=description,
        is_visible_to_client=is_visible_to_client,
    )
