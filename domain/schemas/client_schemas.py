from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from domain.enums import ClientStatus, DocumentCategory, SenderType


class ClientBase(BaseModel):
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=30)
    age: Optional[int] = Field(default=None, ge=1, le=120)
    height: Optional[float] = Field(default=None, gt=0, le=300)
    current_weight: Optional[float] = Field(default=None, gt=0, le=1000)
    goal_weight: Optional[float] = Field(default=None, gt=0, le=1000)
    goal: Optional[str] = Field(default=None, max_length=200)
    plan_type: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=2000)
    dietary_tags: List[str] = Field(default_factory=list)
    join_date: Optional[date] = None


class ClientCreate(ClientBase):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class ClientUpdate(ClientBase):
    """Partial update; only fields present in the payload are applied"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    dietary_tags: Optional[List[str]] = None
    status: Optional[ClientStatus] = None
    last_session: Optional[date] = None
    next_appointment: Optional[datetime] = None


class ClientResponse(BaseModel):
    id: UUID
    dietitian_id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    age: Optional[int] = None
    height: Optional[float] = None
    current_weight: Optional[float] = None
    goal_weight: Optional[float] = None
    goal: Optional[str] = None
    plan_type: Optional[str] = None
    status: ClientStatus
    notes: Optional[str] = None
    dietary_tags: Optional[List[str]] = None
    join_date: Optional[date] = None
    last_session: Optional[date] = None
    next_appointment: Optional[datetime] = None
    progress_percentage: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ClientAccountResponse(BaseModel):
    """Returned once when a portal account is created or reset"""

    account_id: UUID
    client_id: UUID
    email: str
    is_active: bool
    temporary_password: Optional[str] = None


class WeightEntryResponse(BaseModel):
    id: UUID
    client_id: UUID
    weight: float
    recorded_date: date
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class DietitianMessageCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000)


class MessageResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    client_id: UUID
    sender_type: SenderType
    content: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class DocumentResponse(BaseModel):
    id: UUID
    client_id: UUID
    name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    category: DocumentCategory
    description: Optional[str] = None
    is_visible_to_client: bool
    upload_date: Optional[datetime] = None

    model_config = {"from_attributes": True}
