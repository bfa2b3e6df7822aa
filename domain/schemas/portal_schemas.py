"""
Request bodies accepted by the client portal (token-scoped) endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ClientLoginRequest(BaseModel):
    # Presence is checked by the service so the portal gets its own message
    email: Optional[str] = None
    password: Optional[str] = None


class WeightCreateRequest(BaseModel):
    weight: float = Field(..., gt=0, le=1000)
    notes: Optional[str] = Field(default=None, max_length=500)


class SendMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000)


class ConsentItem(BaseModel):
    consent_type: Optional[str] = None
    granted: Optional[bool] = None


class ConsentUpdateRequest(BaseModel):
    consents: List[ConsentItem]


class DataRequestCreate(BaseModel):
    request_type: Optional[str] = Field(default=None, alias="requestType")

    model_config = {"populate_by_name": True}
