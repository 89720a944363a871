"""
Check-in verification flow

Submission is gated on a GPS fix and, for a client's first check-in, one
biometric capture. The flow's phase is a single tagged state; acquired
artifacts travel inside it, so a location, a biometric and an in-progress
capture mode can never disagree with the phase.

    Idle -> LocationPending -> LocationReady
         -> BiometricPending (first check-in) -> BiometricReady
         -> Submitting -> SubmittedSuccess | SubmittedFailure

A failed submission settles back into LocationReady/BiometricReady with the
artifacts intact. Device calls run as tracked tasks; `close()` cancels them,
releases the camera, and turns any late completion into a no-op.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Optional, Union

from .api_client import ApiError, PortalApiClient
from .captures import FACIAL, FINGERPRINT, BiometricCapture
from .devices import Navigator
from .errors import CheckInError, FlowStateError, SubmissionError
from .facial import FacialCaptureController
from .fingerprint import FingerprintCaptureController
from .history import FirstCheckInDetector, check_ins_key
from .location import LocationAcquirer, LocationFix
from .notifications import ToastCenter
from .query_cache import QueryCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifacts:
    location: Optional[LocationFix] = None
    biometric: Optional[BiometricCapture] = None


@dataclass(frozen=True)
class Idle:
    artifacts: Artifacts = field(default_factory=Artifacts)


@dataclass(frozen=True)
class LocationPending:
    artifacts: Artifacts


@dataclass(frozen=True)
class LocationReady:
    artifacts: Artifacts


@dataclass(frozen=True)
class BiometricPending:
    artifacts: Artifacts
    mode: str  # facial, fingerprint


@dataclass(frozen=True)
class BiometricReady:
    artifacts: Artifacts


@dataclass(frozen=True)
class Submitting:
    artifacts: Artifacts


@dataclass(frozen=True)
class SubmittedSuccess:
    check_in: dict
    artifacts: Artifacts = field(default_factory=Artifacts)


@dataclass(frozen=True)
class SubmittedFailure:
    artifacts: Artifacts
    message: str


@dataclass(frozen=True)
class Closed:
    artifacts: Artifacts = field(default_factory=Artifacts)


FlowState = Union[
    Idle,
    LocationPending,
    LocationReady,
    BiometricPending,
    BiometricReady,
    Submitting,
    SubmittedSuccess,
    SubmittedFailure,
    Closed,
]

RESTING_STATES = (Idle, LocationReady, BiometricReady, SubmittedSuccess, SubmittedFailure)


def settle(artifacts: Artifacts) -> FlowState:
    """Resting state matching the artifacts held"""
    if artifacts.location is not None and artifacts.biometric is not None:
        return BiometricReady(artifacts)
    if artifacts.location is not None:
        return LocationReady(artifacts)
    return Idle(artifacts)


class _TornDown(Exception):
    """A device call finished after the flow was closed"""


class CheckInFlow:
    """Client portal check-in form for one client"""

    def __init__(
        self,
        client_id: int,
        navigator: Navigator,
        api: PortalApiClient,
        cache: Optional[QueryCache] = None,
        toasts: Optional[ToastCenter] = None,
    ):
        self.client_id = client_id
        self.api = api
        self.cache = cache if cache is not None else QueryCache()
        self.toasts = toasts if toasts is not None else ToastCenter()

        self.locator = LocationAcquirer(navigator.geolocation)
        self.detector = FirstCheckInDetector(api, self.cache)
        self.facial = FacialCaptureController(navigator.media_devices)
        self.fingerprint = FingerprintCaptureController(navigator.credentials, navigator.origin)

        self.notes = ""
        self.is_first_check_in: Optional[bool] = None
        self.last_error: Optional[CheckInError] = None
        self.history: list[FlowState] = []
        self._state: FlowState = Idle()
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def location(self) -> str:
        fix = self._state.artifacts.location
        return fix.location if fix is not None else ""

    @property
    def biometric(self) -> Optional[BiometricCapture]:
        return self._state.artifacts.biometric

    @property
    def closed(self) -> bool:
        return isinstance(self._state, Closed)

    @property
    def requires_biometric(self) -> bool:
        # Unknown history counts as a first check-in
        return self.is_first_check_in is not False

    @property
    def is_submitting(self) -> bool:
        return isinstance(self._state, Submitting)

    @property
    def can_submit(self) -> bool:
        if not isinstance(self._state, RESTING_STATES):
            return False
        if not self.location:
            return False
        return not (self.requires_biometric and self.biometric is None)

    def _transition(self, state: FlowState) -> None:
        logger.debug(f"Check-in flow {type(self._state).__name__} -> {type(state).__name__}")
        self._state = state
        self.history.append(state)

    def _require_resting(self) -> Artifacts:
        if self.closed:
            raise FlowStateError(FlowStateError.CLOSED)
        if not isinstance(self._state, RESTING_STATES):
            raise FlowStateError(FlowStateError.BUSY)
        return self._state.artifacts

    def _fail(self, error: CheckInError, title: str) -> None:
        self.last_error = error
        self.toasts.error(title, error.message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _device_call(self, awaitable: Awaitable[Any]) -> Any:
        """Await a device or network call as a task that close() can cancel"""
        if self.closed:
            raise FlowStateError(FlowStateError.CLOSED)

        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            result = await task
        except BaseException:
            if self.closed:
                raise _TornDown() from None
            raise
        finally:
            self._tasks.discard(task)

        if self.closed:
            raise _TornDown()
        return result

    async def mount(self) -> bool:
        """Determine once whether this is the client's first check-in"""
        if self.is_first_check_in is None:
            try:
                self.is_first_check_in = await self._device_call(self.detector.detect(self.client_id))
            except _TornDown:
                return True
        return self.is_first_check_in

    def close(self) -> None:
        """Tear down: cancel device calls, release the camera, drop artifacts"""
        if self.closed:
            return
        self._transition(Closed())
        for task in list(self._tasks):
            task.cancel()
        self.facial.release()
        self.notes = ""
        logger.debug(f"Check-in flow for client {self.client_id} closed")

    async def __aenter__(self):
        await self.mount()
        return self

    async def __aexit__(self, *exc_info):
        self.close()

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------

    async def acquire_location(self) -> Optional[LocationFix]:
        """Capture a GPS fix; returns None and records last_error on failure"""
        artifacts = self._require_resting()
        self._transition(LocationPending(artifacts))

        try:
            fix = await self._device_call(self.locator.acquire())
        except _TornDown:
            return None
        except CheckInError as e:
            self._transition(settle(artifacts))
            self._fail(e, "Location Required")
            return None
        except Exception:
            self._transition(settle(artifacts))
            raise

        self.last_error = None
        self._transition(settle(Artifacts(location=fix, biometric=artifacts.biometric)))
        self.toasts.toast("Location Captured", f"GPS location recorded: {fix.location}")
        return fix

    # ------------------------------------------------------------------
    # Biometrics
    # ------------------------------------------------------------------

    def _begin_biometric(self, mode: str) -> Artifacts:
        """Enter BiometricPending; any previous capture is discarded"""
        if isinstance(self._state, BiometricPending) and self.facial.is_active:
            # Switching away from an open camera preview
            self.facial.release()
            self._transition(settle(self._state.artifacts))
        artifacts = Artifacts(location=self._require_resting().location)
        self._transition(BiometricPending(artifacts, mode))
        return artifacts

    async def start_camera(self) -> bool:
        """Open the camera preview for facial capture"""
        artifacts = self._begin_biometric(FACIAL)

        try:
            await self._device_call(self.facial.start())
        except _TornDown:
            self.facial.release()
            return False
        except CheckInError as e:
            self._transition(settle(artifacts))
            self._fail(e, "Camera Unavailable")
            return False
        except Exception:
            self.facial.release()
            self._transition(settle(artifacts))
            raise

        self.last_error = None
        return True

    def capture_photo(self) -> Optional[BiometricCapture]:
        """Freeze the preview into a still image; the camera is released either way"""
        if not (
            isinstance(self._state, BiometricPending)
            and self._state.mode == FACIAL
            and self.facial.is_active
        ):
            raise FlowStateError(FlowStateError.BUSY, "Start the camera before capturing a photo.")
        artifacts = self._state.artifacts

        try:
            capture = self.facial.capture()
        except CheckInError as e:
            self._transition(settle(artifacts))
            self._fail(e, "Capture Failed")
            return None
        except Exception:
            self._transition(settle(artifacts))
            raise

        self.last_error = None
        self._transition(settle(Artifacts(location=artifacts.location, biometric=capture)))
        self.toasts.toast("Photo Captured", "Facial verification photo captured successfully.")
        return capture

    def cancel_camera(self) -> None:
        if isinstance(self._state, BiometricPending) and self._state.mode == FACIAL:
            self.facial.cancel()
            self._transition(settle(self._state.artifacts))

    async def capture_fingerprint(self) -> Optional[BiometricCapture]:
        """Run the platform fingerprint ceremony"""
        artifacts = self._begin_biometric(FINGERPRINT)

        try:
            capture = await self._device_call(self.fingerprint.capture(self.client_id))
        except _TornDown:
            return None
        except CheckInError as e:
            self._transition(settle(artifacts))
            self._fail(e, "Fingerprint Verification Failed")
            return None
        except Exception:
            self._transition(settle(artifacts))
            raise

        self.last_error = None
        self._transition(settle(Artifacts(location=artifacts.location, biometric=capture)))
        self.toasts.toast("Fingerprint Captured", "Fingerprint verification completed successfully.")
        return capture

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def build_payload(self, artifacts: Artifacts) -> dict:
        fix = artifacts.location
        biometric = artifacts.biometric
        return {
            "clientId": self.client_id,
            "location": fix.location,
            "notes": self.notes.strip() or None,
            "checkInTime": datetime.now(timezone.utc).isoformat(),
            "biometricData": biometric.payload if biometric else None,
            "biometricType": biometric.kind if biometric else None,
            "isFirstCheckIn": self.requires_biometric,
            "gpsAccuracy": fix.accuracy if fix.accuracy is not None else "high",
        }

    async def submit(self) -> Optional[dict]:
        """
        Post the check-in.

        Both requirements are re-checked here, independent of can_submit.
        Returns the stored check-in, or None with last_error set.
        """
        artifacts = self._require_resting()

        if artifacts.location is None:
            self._fail(SubmissionError(SubmissionError.MISSING_LOCATION), "Location Required")
            return None
        if self.requires_biometric and artifacts.biometric is None:
            self._fail(SubmissionError(SubmissionError.MISSING_BIOMETRIC), "Verification Required")
            return None

        payload = self.build_payload(artifacts)
        self._transition(Submitting(artifacts))

        try:
            check_in = await self._device_call(self.api.submit_check_in(payload))
        except _TornDown:
            return None
        except ApiError as e:
            error = SubmissionError(SubmissionError.SERVER, e.message or None)
            self._transition(SubmittedFailure(artifacts, error.message))
            self._transition(settle(artifacts))
            self._fail(error, "Check-in Failed")
            return None
        except Exception:
            self._transition(settle(artifacts))
            raise

        self.last_error = None
        self.notes = ""
        self._transition(SubmittedSuccess(check_in))
        self.cache.invalidate(check_ins_key(self.client_id))
        self.cache.invalidate(("/api/check-ins",))
        self.toasts.toast("Check-in Successful", "Your check-in has been recorded with GPS verification.")
        return check_in
