"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_us_phone


class ClientCreate(BaseModel):
    """Schema for registering a new bail bond client"""

    fullName: str
    phoneNumber: Optional[str] = None
    address: Optional[str] = None

    @field_validator("fullName")
    @classmethod
    def validate_full_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    publicId: str
    clientCode: str
    fullName: str
    phoneNumber: Optional[str] = None
    address: Optional[str] = None
    isActive: bool
    lastCheckIn: Optional[datetime] = None
    missedCheckIns: int
    createdAt: Optional[datetime] = None
