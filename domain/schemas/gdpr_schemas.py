from datetime import date, datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from domain.enums import ConsentType, DataRequestStatus, DataRequestType
from domain.models.database import as_utc


class ConsentRecordResponse(BaseModel):
    id: UUID
    client_id: UUID
    consent_type: ConsentType
    granted: bool
    granted_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    version: str
    purpose: Optional[str] = None
    legal_basis: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("granted_at", "withdrawn_at", "created_at", "updated_at")
    @classmethod
    def in_utc(cls, value):
        return as_utc(value)


class DataRequestResponse(BaseModel):
    id: UUID
    client_id: UUID
    requested_by: str
    request_type: DataRequestType
    status: DataRequestStatus
    requested_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    export_data: Optional[Dict[str, Any]] = None

    model_config = {"from_attributes": True}

    @field_validator("requested_at", "completed_at", "expires_at")
    @classmethod
    def in_utc(cls, value):
        return as_utc(value)


class RetentionPolicyResponse(BaseModel):
    id: UUID
    data_category: str
    retention_period_years: int
    auto_delete: bool
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class PrivacyPolicyResponse(BaseModel):
    id: UUID
    version: str
    content: str
    effective_date: Optional[date] = None
    is_current: bool

    model_config = {"from_attributes": True}


class GdprActionRequest(BaseModel):
    action: str = Field(..., min_length=1)
    client_id: Optional[UUID] = Field(default=None, alias="clientId")
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class RetentionPolicyUpdate(BaseModel):
    """Payload of the ``update_retention_policy`` action."""

    policy_id: UUID = Field(..., alias="policyId")
    years: Optional[int] = Field(default=None, ge=1, le=100)
    auto_delete: Optional[bool] = Field(default=None, alias="autoDelete")
    description: Optional[str] = Field(default=None, max_length=1000)

    model_config = {"populate_by_name": True}
