"""Invoice routes"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from domain.enums import InvoiceStatus
from domain.models import Dietitian
from domain.schemas import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from services import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("", response_model=List[InvoiceResponse])
def list_invoices(
    client_id: Optional[UUID] = Query(default=None),
    status_filter: Optional[InvoiceStatus] = Query(default=None, alias="status"),
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return InvoiceService.list_invoices(
        db,
        dietitian.id,
        client_id=client_id,
        status=status_filter.value if status_filter else None,
    )


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Create an invoice numbered INV-YYYYMM-NNNN."""
    return InvoiceService.create_invoice(db, dietitian.id, payload)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: UUID,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return InvoiceService.get_invoice(db, dietitian.id, invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: UUID,
    payload: InvoiceUpdate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    return InvoiceService.update_invoice(db, dietitian.id, invoice_id, payload)
