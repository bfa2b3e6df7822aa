from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from domain.models.database import as_utc


class UserSessionResponse(BaseModel):
    id: UUID
    device_info: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    is_current: bool = False

    model_config = {"from_attributes": True}

    @field_validator("created_at", "last_activity")
    @classmethod
    def in_utc(cls, value):
        return as_utc(value)


class SessionActionRequest(BaseModel):
    action: Optional[str] = None
