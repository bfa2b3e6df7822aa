"""Client portal routes: login, session and token-scoped client data.

The client id always comes from the verified portal token, never from the
request body or path.
"""

from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.orm import Session

from api.dependencies import get_current_client_id, get_db
from api.rate_limit import (
    rate_limit_data,
    rate_limit_documents,
    rate_limit_gdpr,
    rate_limit_login,
    rate_limit_messages,
    rate_limit_session,
)
from app.config import settings
from domain.enums import DataRequestType, SenderType
from domain.schemas import (
    ClientLoginRequest,
    ConsentRecordResponse,
    ConsentUpdateRequest,
    DataRequestCreate,
    DocumentResponse,
    SendMessageRequest,
    WeightCreateRequest,
)
from services import (
    ClientAuthService,
    DocumentService,
    GdprService,
    MessagingService,
    PortalService,
)

router = APIRouter(prefix="/client-auth", tags=["Client portal"])
logger = logging.getLogger("nutriflow.api.client_auth")


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "1", "yes", "on")


# ============================================================================
# Session
# ============================================================================


@router.post("/login")
@rate_limit_login
def login(
    request: Request,
    response: Response,
    payload: ClientLoginRequest,
    db: Session = Depends(get_db),
):
    """Exchange portal credentials for a client token (also set as an http-only cookie)."""
    result = ClientAuthService.login(db, payload.email, payload.password)
    response.set_cookie(
        key=settings.client_session_cookie,
        value=result["token"],
        max_age=settings.client_token_ttl_hours * 3600,
        httponly=True,
        secure=settings.is_production(),
        samesite="lax",
        path="/",
    )
    return {
        "success": True,
        "token": result["token"],
        "client": result["client"],
        "message": "Connexion réussie",
    }


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(key=settings.client_session_cookie, path="/")
    return {"success": True, "message": "Déconnexion réussie"}


@router.get("/validate-session")
@rate_limit_session
def validate_session(
    request: Request,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    return {"success": True, "client": PortalService.get_session_client(db, client_id)}


# ============================================================================
# Portal data
# ============================================================================


@router.get("/data")
@rate_limit_data
def get_portal_data(
    request: Request,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    """Profile, current plan, weight history, upcoming appointments and recent messages."""
    return {"success": True, "data": PortalService.get_portal_data(db, client_id)}


@router.post("/weight")
@rate_limit_data
def add_weight(
    request: Request,
    payload: WeightCreateRequest,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    entry = PortalService.add_weight(db, client_id, payload.weight, payload.notes)
    return {
        "success": True,
        "data": {
            "id": str(entry.id),
            "weight": float(entry.weight),
            "date": entry.recorded_date.isoformat(),
            "notes": entry.notes,
        },
        "message": "Poids ajouté avec succès",
    }


@router.post("/send-message")
@rate_limit_messages
def send_message(
    request: Request,
    payload: SendMessageRequest,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    message = MessagingService.send_message(
        db, client_id, payload.message.strip(), SenderType.CLIENT
    )
    return {
        "success": True,
        "message": {
            "id": str(message.id),
            "content": message.content,
            "sender": message.sender_type.value,
            "timestamp": message.created_at.isoformat(),
            "read": False,
        },
    }


# ============================================================================
# Documents
# ============================================================================


@router.get("/documents")
@rate_limit_documents
def list_documents(
    request: Request,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    documents = DocumentService.list_for_portal(db, client_id)
    return {
        "documents": [
            DocumentResponse.model_validate(d).model_dump(mode="json") for d in documents
        ]
    }


@router.get("/documents/download/{document_id}")
@rate_limit_documents
def download_document(
    request: Request,
    document_id: uuid.UUID,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    document, content = DocumentService.download_for_portal(db, client_id, document_id)
    return Response(
        content=content,
        media_type=document.mime_type or "application/octet-stream",
        headers={
            "Content-Disposition": f'inline; filename="{document.name}"',
            "Cache-Control": "public, max-age=3600",
        },
    )


@router.post("/progress-photo")
@rate_limit_documents
def upload_progress_photo(
    request: Request,
    photo: Optional[UploadFile] = File(default=None),
    isVisibleToNutritionist: Optional[str] = Form(default="false"),
    notes: Optional[str] = Form(default=None),
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    """Multipart upload of a JPEG/PNG/WebP progress photo (max 5 MB)."""
    data = photo.file.read() if photo is not None else None
    document = DocumentService.upload_progress_photo(
        db,
        client_id,
        filename=photo.filename if photo is not None else None,
        content_type=photo.content_type if photo is not None else None,
        data=data,
        visible_to_nutritionist=_as_bool(isVisibleToNutritionist),
        notes=notes,
    )
    return {
        "success": True,
        "document": document,
        "message": "Photo de progrès ajoutée avec succès",
    }


# ============================================================================
# GDPR
# ============================================================================


@router.get("/gdpr/consents")
@rate_limit_gdpr
def get_consents(
    request: Request,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    consents = GdprService.list_client_consents(db, client_id)
    return {
        "consents": [
            ConsentRecordResponse.model_validate(c).model_dump(mode="json") for c in consents
        ]
    }


@router.post("/gdpr/consents")
@rate_limit_gdpr
def update_consents(
    request: Request,
    payload: ConsentUpdateRequest,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    consents = GdprService.update_client_consents(db, client_id, payload.consents)
    return {
        "success": True,
        "message": "Consentements mis à jour avec succès",
        "consents": [
            ConsentRecordResponse.model_validate(c).model_dump(mode="json") for c in consents
        ],
    }


@router.post("/gdpr/export")
@rate_limit_gdpr
def request_export(
    request: Request,
    payload: Optional[DataRequestCreate] = None,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    data_request = GdprService.create_client_request(
        db,
        client_id,
        payload.request_type if payload else None,
        DataRequestType.EXPORT,
    )
    return {
        "success": True,
        "requestId": str(data_request.id),
        "message": "Votre demande a été envoyée. Vous recevrez un email sous 48h.",
    }


@router.post("/gdpr/deletion")
@rate_limit_gdpr
def request_deletion(
    request: Request,
    client_id: uuid.UUID = Depends(get_current_client_id),
    db: Session = Depends(get_db),
):
    data_request = GdprService.create_client_request(
        db, client_id, DataRequestType.DELETION.value, DataRequestType.DELETION
    )
    return {
        "success": True,
        "requestId": str(data_request.id),
        "message": "Votre demande de suppression a été envoyée. Un responsable vous contactera sous 48h.",
    }
