"""Fingerprint capture through a platform authenticator credential ceremony"""

import asyncio
import base64
import logging
import secrets
from typing import Optional
from urllib.parse import urlsplit

from ..config import PORTAL_RP_NAME
from .captures import FingerprintCapture
from .devices import CredentialsContainer, DOMException
from .errors import FingerprintError

logger = logging.getLogger(__name__)

CEREMONY_TIMEOUT_MS = 60000
CHALLENGE_BYTES = 32

# ES256 then RS256
PUBLIC_KEY_ALGORITHMS = (-7, -257)


def build_creation_options(
    client_id: int, origin: str, rp_name: str = PORTAL_RP_NAME, challenge: Optional[bytes] = None
) -> dict:
    """Credential creation options scoped to the portal's origin"""
    rp_id = urlsplit(origin).hostname or "localhost"
    return {
        "publicKey": {
            "challenge": challenge or secrets.token_bytes(CHALLENGE_BYTES),
            "rp": {"name": rp_name, "id": rp_id},
            "user": {
                "id": f"client-{client_id}".encode("utf-8"),
                "name": f"client-{client_id}",
                "displayName": f"Client {client_id}",
            },
            "pubKeyCredParams": [{"type": "public-key", "alg": alg} for alg in PUBLIC_KEY_ALGORITHMS],
            "authenticatorSelection": {
                "authenticatorAttachment": "platform",
                "userVerification": "required",
                "residentKey": "preferred",
                "requireResidentKey": False,
            },
            "timeout": CEREMONY_TIMEOUT_MS,
            "attestation": "direct",
        }
    }


class FingerprintCaptureController:
    def __init__(
        self,
        credentials: Optional[CredentialsContainer],
        origin: str,
        rp_name: str = PORTAL_RP_NAME,
        timeout: float = CEREMONY_TIMEOUT_MS / 1000,
    ):
        self.credentials = credentials
        self.origin = origin
        self.rp_name = rp_name
        self.timeout = timeout

    async def is_supported(self) -> bool:
        if self.credentials is None:
            return False
        try:
            return bool(await self.credentials.is_user_verifying_platform_authenticator_available())
        except Exception as e:
            logger.warning(f"🔐 Platform authenticator check failed: {e}")
            return False

    async def capture(self, client_id: int) -> FingerprintCapture:
        """
        Run the credential ceremony and return the base64 credential id.

        Raises:
            FingerprintError: unsupported platform, user denial, or ceremony failure
        """
        if not await self.is_supported():
            raise FingerprintError(FingerprintError.NOT_SUPPORTED)

        options = build_creation_options(client_id, self.origin, self.rp_name)
        try:
            credential = await asyncio.wait_for(self.credentials.create(options), timeout=self.timeout)
        except DOMException as e:
            logger.warning(f"🔐 Credential ceremony failed: {e}")
            if e.name == "NotAllowedError":
                raise FingerprintError(FingerprintError.PERMISSION_DENIED) from e
            if e.name == "NotSupportedError":
                raise FingerprintError(FingerprintError.NOT_SUPPORTED) from e
            raise FingerprintError(FingerprintError.FAILED) from e
        except asyncio.TimeoutError as e:
            logger.warning(f"🔐 Credential ceremony timed out after {self.timeout}s")
            raise FingerprintError(FingerprintError.FAILED) from e
        except Exception as e:
            logger.error(f"❌ Credential adapter error: {e}")
            raise FingerprintError(FingerprintError.FAILED) from e

        if credential is None or not credential.raw_id:
            raise FingerprintError(FingerprintError.FAILED)

        encoded = base64.b64encode(credential.raw_id).decode("utf-8")
        logger.info(f"🔐 Fingerprint credential created for client {client_id}")
        return FingerprintCapture(credential_id_base64=encoded)
