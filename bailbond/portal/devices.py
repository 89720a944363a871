"""
Device adapters consumed by the check-in flow

The portal runs inside a host (kiosk shell, mobile wrapper, test harness) that
exposes the platform's geolocation, camera and credential APIs. These
protocols describe the slice of each API the flow needs; a host leaves an
attribute of `Navigator` as None when the platform lacks that capability.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, Protocol

import numpy as np

from ..config import PORTAL_ORIGIN


class GeolocationErrorCode(IntEnum):
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class GeolocationPositionError(Exception):
    """Raised by a geolocation adapter when no fix could be obtained"""

    def __init__(self, code: GeolocationErrorCode, message: str = ""):
        super().__init__(message or code.name)
        self.code = code
        self.message = message


class DOMException(Exception):
    """Named platform error (NotAllowedError, NotFoundError, NotSupportedError, ...)"""

    def __init__(self, name: str, message: str = ""):
        super().__init__(f"{name}: {message}" if message else name)
        self.name = name
        self.message = message


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout: float = 15.0  # seconds
    maximum_age: float = 30.0  # seconds a cached position may be reused


@dataclass(frozen=True)
class GeolocationCoordinates:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None  # metres


class Geolocation(Protocol):
    async def get_current_position(self, options: PositionOptions) -> GeolocationCoordinates: ...


class MediaStreamTrack(Protocol):
    kind: str

    @property
    def ready_state(self) -> str: ...  # "live" or "ended"

    def stop(self) -> None: ...


class MediaStream(Protocol):
    def get_tracks(self) -> list[MediaStreamTrack]: ...

    def read_frame(self) -> np.ndarray:
        """Current video frame as an HxWx3 BGR image"""
        ...


class MediaDevices(Protocol):
    async def get_user_media(self, constraints: dict[str, Any]) -> MediaStream: ...


@dataclass(frozen=True)
class PublicKeyCredential:
    id: str
    raw_id: bytes
    type: str = "public-key"


class CredentialsContainer(Protocol):
    async def is_user_verifying_platform_authenticator_available(self) -> bool: ...

    async def create(self, options: dict[str, Any]) -> Optional[PublicKeyCredential]: ...


@dataclass
class Navigator:
    """Capabilities the host exposes to the portal"""

    origin: str = PORTAL_ORIGIN
    geolocation: Optional[Geolocation] = None
    media_devices: Optional[MediaDevices] = None
    credentials: Optional[CredentialsContainer] = None
