"""Client portal check-in verification flow"""

from .api_client import ApiError, PortalApiClient
from .captures import BiometricCapture, FacialCapture, FingerprintCapture
from .devices import Navigator
from .errors import (
    CameraError,
    CheckInError,
    FingerprintError,
    FlowStateError,
    LocationError,
    SubmissionError,
)
from .flow import CheckInFlow
from .notifications import Toast, ToastCenter
from .query_cache import QueryCache

__all__ = [
    "ApiError",
    "BiometricCapture",
    "CameraError",
    "CheckInError",
    "CheckInFlow",
    "FacialCapture",
    "FingerprintCapture",
    "FingerprintError",
    "FlowStateError",
    "LocationError",
    "Navigator",
    "PortalApiClient",
    "QueryCache",
    "SubmissionError",
    "Toast",
    "ToastCenter",
]
