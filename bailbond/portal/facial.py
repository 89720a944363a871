"""
Facial capture: camera stream lifecycle and still-frame encoding

The camera is held through a `CameraSession` handle. Every exit path
(capture, cancel, starting a new session, flow teardown) goes through
`release()`, which stops all tracks exactly once.
"""

import base64
import logging
from typing import Optional

import cv2
import numpy as np

from .captures import FacialCapture
from .devices import DOMException, MediaDevices, MediaStream
from .errors import CameraError

logger = logging.getLogger(__name__)

CAMERA_CONSTRAINTS = {
    "video": {
        "facingMode": "user",
        "width": {"ideal": 640},
        "height": {"ideal": 480},
    },
    "audio": False,
}
JPEG_QUALITY = 80

_PERMISSION_ERRORS = {"NotAllowedError", "PermissionDeniedError", "SecurityError"}
_MISSING_DEVICE_ERRORS = {"NotFoundError", "DevicesNotFoundError", "OverconstrainedError"}


def encode_frame(frame: np.ndarray, quality: int = JPEG_QUALITY) -> str:
    """Serialize a BGR frame as a JPEG data URL"""
    if frame is None or frame.size == 0:
        raise CameraError(CameraError.UNAVAILABLE, "No image was received from the camera. Please try again.")

    ok, encoded = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise CameraError(CameraError.UNAVAILABLE, "Could not process the camera image. Please try again.")
    return "data:image/jpeg;base64," + base64.b64encode(encoded.tobytes()).decode("utf-8")


class CameraSession:
    """Live camera preview; release() is idempotent"""

    def __init__(self, stream: MediaStream):
        self.stream = stream
        self.released = False

    @property
    def active(self) -> bool:
        return not self.released

    def read_frame(self) -> np.ndarray:
        if self.released:
            raise CameraError(CameraError.UNAVAILABLE, "Camera is not active. Please start the camera again.")
        return self.stream.read_frame()

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        for track in self.stream.get_tracks():
            track.stop()
        logger.debug("📷 Camera stream released")

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.release()


class FacialCaptureController:
    def __init__(self, media_devices: Optional[MediaDevices]):
        self.media_devices = media_devices
        self.session: Optional[CameraSession] = None

    @property
    def is_active(self) -> bool:
        return self.session is not None and self.session.active

    async def start(self) -> CameraSession:
        """
        Open the user-facing camera.

        Raises:
            CameraError: permission denied, no camera, or camera unavailable
        """
        # Only one live stream at a time
        self.release()

        if self.media_devices is None:
            raise CameraError(CameraError.UNAVAILABLE)

        try:
            stream = await self.media_devices.get_user_media(CAMERA_CONSTRAINTS)
        except DOMException as e:
            logger.warning(f"📷 Camera request failed: {e}")
            if e.name in _PERMISSION_ERRORS:
                raise CameraError(CameraError.PERMISSION_DENIED) from e
            if e.name in _MISSING_DEVICE_ERRORS:
                raise CameraError(CameraError.NOT_FOUND) from e
            raise CameraError(CameraError.UNAVAILABLE) from e
        except Exception as e:
            logger.error(f"❌ Camera adapter error: {e}")
            raise CameraError(CameraError.UNAVAILABLE) from e

        self.session = CameraSession(stream)
        logger.info("📷 Camera started")
        return self.session

    def capture(self) -> FacialCapture:
        """Freeze the current frame as a still image and release the camera"""
        if not self.is_active:
            raise CameraError(CameraError.UNAVAILABLE, "Camera is not active. Please start the camera again.")

        try:
            image = encode_frame(self.session.read_frame())
        except CameraError:
            raise
        except Exception as e:
            logger.error(f"❌ Could not grab camera frame: {e}")
            raise CameraError(CameraError.UNAVAILABLE, "Could not process the camera image. Please try again.") from e
        finally:
            self.release()

        logger.info(f"📷 Facial image captured ({len(image)} bytes)")
        return FacialCapture(image_data_url=image)

    def cancel(self) -> None:
        self.release()

    def release(self) -> None:
        if self.session is not None:
            self.session.release()
            self.session = None
