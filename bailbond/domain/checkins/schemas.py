"""Check-in domain schemas - Pydantic models for validation"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, field_validator, model_validator

from ...services.geolocation_service import parse_location
from ...shared.validators import validate_credential_id, validate_image_data_url


class BiometricType(str, Enum):
    FACIAL = "facial"
    FINGERPRINT = "fingerprint"


class CheckInCreate(BaseModel):
    """Payload posted by the client portal"""

    clientId: int
    location: str
    notes: Optional[str] = None
    checkInTime: Optional[datetime] = None
    biometricData: Optional[str] = None
    biometricType: Optional[BiometricType] = None
    isFirstCheckIn: bool = False
    # Metres when the device reports it; older portals send "high"
    gpsAccuracy: Optional[Union[float, str]] = None

    @field_validator("location")
    @classmethod
    def validate_location(cls, v):
        parse_location(v)
        return v.strip()

    @field_validator("checkInTime")
    @classmethod
    def validate_check_in_time(cls, v):
        # Stored as naive UTC, matching the database's CURRENT_TIMESTAMP defaults
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator("gpsAccuracy")
    @classmethod
    def validate_gps_accuracy(cls, v):
        if isinstance(v, str):
            try:
                return float(v)
            except ValueError:
                return None
        return v

    @model_validator(mode="after")
    def validate_biometric(self):
        if self.biometricData and not self.biometricType:
            raise ValueError("biometricType is required when biometricData is provided")
        if self.biometricType and not self.biometricData:
            raise ValueError("biometricData is required when biometricType is provided")
        if self.biometricType == BiometricType.FACIAL:
            validate_image_data_url(self.biometricData)
        elif self.biometricType == BiometricType.FINGERPRINT:
            validate_credential_id(self.biometricData)
        return self


class CheckInResponse(BaseModel):
    """Schema for check-in response"""

    id: int
    clientId: int
    checkInTime: datetime
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    gpsAccuracy: Optional[float] = None
    withinJurisdiction: Optional[bool] = None
    notes: Optional[str] = None
    biometricType: Optional[BiometricType] = None
    isFirstCheckIn: bool
    createdAt: Optional[datetime] = None
