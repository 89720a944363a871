"""User-facing error taxonomy for the check-in flow"""

from typing import Optional


class CheckInError(Exception):
    """Base error; `message` is safe to show to the client"""

    MESSAGES: dict[str, str] = {}

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        self.message = message or self.MESSAGES.get(reason, "Something went wrong. Please try again.")
        super().__init__(self.message)


class LocationError(CheckInError):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"

    MESSAGES = {
        PERMISSION_DENIED: (
            "Location access denied. GPS location is mandatory for check-in. "
            "Please enable location permissions and try again."
        ),
        POSITION_UNAVAILABLE: (
            "GPS signal unavailable. GPS location is mandatory for check-in. "
            "Please move to an area with a clearer view of the sky and try again."
        ),
        TIMEOUT: (
            "GPS request timed out. GPS location is mandatory for check-in. "
            "Please try again."
        ),
        UNSUPPORTED: (
            "This device does not support GPS location. "
            "GPS location is mandatory for check-in."
        ),
    }


class CameraError(CheckInError):
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"

    MESSAGES = {
        PERMISSION_DENIED: (
            "Camera access denied. Please allow camera access or use fingerprint "
            "verification instead."
        ),
        NOT_FOUND: "No camera found on this device. Please use fingerprint verification instead.",
        UNAVAILABLE: "Camera is unavailable. Please try again.",
    }


class FingerprintError(CheckInError):
    NOT_SUPPORTED = "not_supported"
    PERMISSION_DENIED = "permission_denied"
    FAILED = "failed"

    MESSAGES = {
        NOT_SUPPORTED: (
            "Fingerprint verification is not supported on this device. "
            "Please try facial verification instead."
        ),
        PERMISSION_DENIED: (
            "Fingerprint verification was cancelled or denied. "
            "Please try again or try facial verification instead."
        ),
        FAILED: "Fingerprint verification failed. Please try facial verification instead.",
    }


class SubmissionError(CheckInError):
    MISSING_LOCATION = "missing_location"
    MISSING_BIOMETRIC = "missing_biometric"
    SERVER = "server"

    MESSAGES = {
        MISSING_LOCATION: "GPS location is required for check-in. Please capture your location first.",
        MISSING_BIOMETRIC: (
            "Biometric verification is required for your first check-in. "
            "Please complete facial or fingerprint verification."
        ),
        SERVER: "Please try again or contact support.",
    }


class FlowStateError(CheckInError):
    """An action was requested that the current state does not allow"""

    BUSY = "busy"
    CLOSED = "closed"

    MESSAGES = {
        BUSY: "Please wait for the current step to finish.",
        CLOSED: "This check-in form is no longer active.",
    }
