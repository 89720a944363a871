import asyncio
import base64

import cv2
import httpx
import numpy as np
import pytest

from bailbond.portal.api_client import ApiError, PortalApiClient
from bailbond.portal.devices import (
    DOMException,
    GeolocationCoordinates,
    GeolocationErrorCode,
    GeolocationPositionError,
    PositionOptions,
)
from bailbond.portal.errors import CameraError, FingerprintError, LocationError
from bailbond.portal.facial import CAMERA_CONSTRAINTS, FacialCaptureController, encode_frame
from bailbond.portal.fingerprint import FingerprintCaptureController, build_creation_options
from bailbond.portal.history import FirstCheckInDetector, check_ins_key
from bailbond.portal.location import HIGH_ACCURACY, LocationAcquirer
from bailbond.portal.query_cache import QueryCache

from fakes import HONOLULU, FakeCheckInServer, FakeCredentials, FakeGeolocation, FakeMediaDevices

# Location


def test_location_is_formatted_with_six_decimals():
    geolocation = FakeGeolocation()

    fix = asyncio.run(LocationAcquirer(geolocation).acquire())

    assert fix.location == HONOLULU
    assert fix.accuracy == 8.0
    assert geolocation.calls == [HIGH_ACCURACY]
    assert HIGH_ACCURACY.enable_high_accuracy is True
    assert HIGH_ACCURACY.timeout == 15.0


@pytest.mark.parametrize(
    "code, reason",
    [
        (GeolocationErrorCode.PERMISSION_DENIED, LocationError.PERMISSION_DENIED),
        (GeolocationErrorCode.POSITION_UNAVAILABLE, LocationError.POSITION_UNAVAILABLE),
        (GeolocationErrorCode.TIMEOUT, LocationError.TIMEOUT),
    ],
)
def test_location_errors_map_to_reasons(code, reason):
    acquirer = LocationAcquirer(FakeGeolocation(error=GeolocationPositionError(code)))

    with pytest.raises(LocationError) as exc_info:
        asyncio.run(acquirer.acquire())

    assert exc_info.value.reason == reason
    assert "GPS location is mandatory for check-in" in exc_info.value.message


def test_location_unsupported_without_geolocation():
    with pytest.raises(LocationError) as exc_info:
        asyncio.run(LocationAcquirer(None).acquire())
    assert exc_info.value.reason == LocationError.UNSUPPORTED


def test_location_times_out_when_device_hangs():
    acquirer = LocationAcquirer(FakeGeolocation(delay=5), PositionOptions(timeout=0.05))

    with pytest.raises(LocationError) as exc_info:
        asyncio.run(acquirer.acquire())
    assert exc_info.value.reason == LocationError.TIMEOUT


# First check-in detection


def detect(server_or_transport, client_id=7, cache=None):
    async def run():
        if isinstance(server_or_transport, FakeCheckInServer):
            api = server_or_transport.client()
        else:
            api = PortalApiClient(base_url="http://testserver", transport=server_or_transport)
        async with api:
            return await FirstCheckInDetector(api, cache or QueryCache()).detect(client_id)

    return asyncio.run(run())


def test_empty_history_is_first_check_in():
    assert detect(FakeCheckInServer()) is True


def test_prior_history_is_not_first_check_in():
    assert detect(FakeCheckInServer(history=[{"id": 1, "clientId": 7}])) is False


def test_history_lookup_failure_requires_biometric():
    assert detect(FakeCheckInServer(history_status=500)) is True


def test_unreachable_server_requires_biometric():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert detect(httpx.MockTransport(refuse)) is True


def test_history_is_served_from_cache():
    server = FakeCheckInServer(history=[{"id": 1, "clientId": 7}])
    cache = QueryCache()

    detect(server, cache=cache)
    detect(server, cache=cache)

    assert len(server.requests) == 1
    assert check_ins_key(7) in cache


def test_api_error_uses_server_detail():
    server = FakeCheckInServer(submit_status=400, submit_error="Client account is inactive")

    async def run():
        async with server.client() as api:
            await api.submit_check_in({"clientId": 7})

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Client account is inactive"


# Facial capture


def test_facial_capture_encodes_jpeg_and_stops_tracks():
    devices = FakeMediaDevices()
    controller = FacialCaptureController(devices)

    asyncio.run(controller.start())
    assert controller.is_active
    capture = controller.capture()

    assert devices.constraints == [CAMERA_CONSTRAINTS]
    assert devices.streams[0].all_stopped
    assert not controller.is_active
    assert capture.kind == "facial"

    header, encoded = capture.payload.split(",", 1)
    assert header == "data:image/jpeg;base64"
    image = cv2.imdecode(np.frombuffer(base64.b64decode(encoded), dtype=np.uint8), cv2.IMREAD_COLOR)
    assert image.shape == (480, 640, 3)


def test_starting_camera_again_releases_previous_stream():
    devices = FakeMediaDevices()
    controller = FacialCaptureController(devices)

    asyncio.run(controller.start())
    asyncio.run(controller.start())

    first, second = devices.streams
    assert first.all_stopped
    assert not second.all_stopped
    controller.cancel()
    assert second.all_stopped
    assert first.tracks[0].stopped == 1


@pytest.mark.parametrize(
    "name, reason",
    [
        ("NotAllowedError", CameraError.PERMISSION_DENIED),
        ("NotFoundError", CameraError.NOT_FOUND),
        ("NotReadableError", CameraError.UNAVAILABLE),
    ],
)
def test_camera_errors_map_to_reasons(name, reason):
    controller = FacialCaptureController(FakeMediaDevices(error=DOMException(name)))

    with pytest.raises(CameraError) as exc_info:
        asyncio.run(controller.start())

    assert exc_info.value.reason == reason
    assert not controller.is_active


def test_camera_denied_suggests_fingerprint():
    assert "fingerprint verification instead" in CameraError(CameraError.PERMISSION_DENIED).message
    assert "fingerprint verification instead" in CameraError(CameraError.NOT_FOUND).message


def test_empty_frame_is_rejected():
    with pytest.raises(CameraError):
        encode_frame(np.zeros((0, 0, 3), dtype=np.uint8))


def test_capture_without_camera_fails():
    with pytest.raises(CameraError):
        FacialCaptureController(FakeMediaDevices()).capture()


# Fingerprint capture


def test_fingerprint_capture_returns_base64_credential_id():
    credentials = FakeCredentials()
    controller = FingerprintCaptureController(credentials, "https://portal.example.com", "Bail Bond Portal")

    capture = asyncio.run(controller.capture(7))

    assert capture.kind == "fingerprint"
    assert capture.payload == "AQIDBA=="
    options = credentials.options[0]["publicKey"]
    assert options["rp"] == {"name": "Bail Bond Portal", "id": "portal.example.com"}
    assert options["user"]["id"] == b"client-7"


def test_creation_options_require_platform_user_verification():
    options = build_creation_options(7, "https://portal.example.com", "Portal", challenge=b"x" * 32)["publicKey"]

    assert options["challenge"] == b"x" * 32
    assert [p["alg"] for p in options["pubKeyCredParams"]] == [-7, -257]
    assert options["authenticatorSelection"]["authenticatorAttachment"] == "platform"
    assert options["authenticatorSelection"]["userVerification"] == "required"
    assert options["timeout"] == 60000
    assert options["attestation"] == "direct"


def test_random_challenge_per_ceremony():
    first = build_creation_options(7, "https://portal.example.com")["publicKey"]["challenge"]
    second = build_creation_options(7, "https://portal.example.com")["publicKey"]["challenge"]
    assert len(first) == 32
    assert first != second


@pytest.mark.parametrize(
    "credentials, reason",
    [
        (None, FingerprintError.NOT_SUPPORTED),
        (FakeCredentials(available=False), FingerprintError.NOT_SUPPORTED),
        (FakeCredentials(error=DOMException("NotAllowedError")), FingerprintError.PERMISSION_DENIED),
        (FakeCredentials(error=DOMException("NotSupportedError")), FingerprintError.NOT_SUPPORTED),
        (FakeCredentials(error=DOMException("InvalidStateError")), FingerprintError.FAILED),
        (FakeCredentials(raw_id=b""), FingerprintError.FAILED),
        (FakeCredentials(error=RuntimeError("authenticator bridge crashed")), FingerprintError.FAILED),
    ],
)
def test_fingerprint_failures(credentials, reason):
    controller = FingerprintCaptureController(credentials, "https://portal.example.com")

    with pytest.raises(FingerprintError) as exc_info:
        asyncio.run(controller.capture(7))

    assert exc_info.value.reason == reason
    assert "facial verification instead" in exc_info.value.message


def test_coordinates_default_to_unknown_accuracy():
    assert GeolocationCoordinates(21.3, -157.8).accuracy is None


def test_fingerprint_ceremony_times_out():
    controller = FingerprintCaptureController(FakeCredentials(delay=5), "https://portal.example.com", timeout=0.05)

    with pytest.raises(FingerprintError) as exc_info:
        asyncio.run(controller.capture(7))
    assert exc_info.value.reason == FingerprintError.FAILED


def test_geolocation_adapter_crash_is_reported_as_unavailable():
    acquirer = LocationAcquirer(FakeGeolocation(error=OSError("location service disconnected")))

    with pytest.raises(LocationError) as exc_info:
        asyncio.run(acquirer.acquire())
    assert exc_info.value.reason == LocationError.POSITION_UNAVAILABLE


def test_frame_grab_failure_still_releases_camera():
    devices = FakeMediaDevices(frame_error=RuntimeError("frame buffer gone"))
    controller = FacialCaptureController(devices)
    asyncio.run(controller.start())

    with pytest.raises(CameraError) as exc_info:
        controller.capture()

    assert exc_info.value.reason == CameraError.UNAVAILABLE
    assert devices.streams[0].all_stopped
    assert not controller.is_active
