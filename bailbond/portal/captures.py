"""Biometric artifacts; the flow holds at most one at a time"""

from dataclasses import dataclass
from typing import Union

FACIAL = "facial"
FINGERPRINT = "fingerprint"


@dataclass(frozen=True)
class FacialCapture:
    image_data_url: str
    kind: str = FACIAL

    @property
    def payload(self) -> str:
        return self.image_data_url


@dataclass(frozen=True)
class FingerprintCapture:
    credential_id_base64: str
    kind: str = FINGERPRINT

    @property
    def payload(self) -> str:
        return self.credential_id_base64


BiometricCapture = Union[FacialCapture, FingerprintCapture]
