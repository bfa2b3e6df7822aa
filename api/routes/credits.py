"""Credits routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_dietitian, get_db
from domain.models import Dietitian
from domain.schemas import CreditsResponse, CreditTransactionCreate, CreditTransactionResponse
from services import CreditsService

router = APIRouter(prefix="/credits", tags=["Credits"])


def _serialize(credits, transactions=None, transaction=None) -> dict:
    body = {"credits": CreditsResponse.model_validate(credits).model_dump(mode="json")}
    if transactions is not None:
        body["transactions"] = [
            CreditTransactionResponse.model_validate(t).model_dump(mode="json")
            for t in transactions
        ]
    if transaction is not None:
        body["transaction"] = CreditTransactionResponse.model_validate(transaction).model_dump(
            mode="json"
        )
    return body


@router.get("")
def get_credits(
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    """Balance (created on first access) and the latest transactions."""
    result = CreditsService.get_credits(db, dietitian.id)
    return _serialize(result["credits"], transactions=result["transactions"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: CreditTransactionCreate,
    dietitian: Dietitian = Depends(get_current_dietitian),
    db: Session = Depends(get_db),
):
    result = CreditsService.record_transaction(db, dietitian.id, payload)
    return _serialize(result["credits"], transaction=result["transaction"])
