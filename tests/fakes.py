"""Fake device adapters and API transport for portal tests"""

import asyncio
import base64
import json

import httpx
import numpy as np

from bailbond.portal.api_client import PortalApiClient
from bailbond.portal.devices import GeolocationCoordinates, PublicKeyCredential

HONOLULU = "21.306944, -157.858333"
NEW_YORK = "40.712776, -74.005974"

FRAME = np.full((480, 640, 3), 127, dtype=np.uint8)


class FakeGeolocation:
    def __init__(self, coords=None, error=None, delay=0.0):
        self.coords = coords or GeolocationCoordinates(21.3069444, -157.8583333, accuracy=8.0)
        self.error = error
        self.delay = delay
        self.calls = []

    async def get_current_position(self, options):
        self.calls.append(options)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.coords


class FakeTrack:
    kind = "video"

    def __init__(self):
        self.stopped = 0

    @property
    def ready_state(self):
        return "ended" if self.stopped else "live"

    def stop(self):
        self.stopped += 1


class FakeStream:
    def __init__(self, frame=FRAME, frame_error=None):
        self.tracks = [FakeTrack()]
        self.frame = frame
        self.frame_error = frame_error

    def get_tracks(self):
        return list(self.tracks)

    def read_frame(self):
        if self.frame_error is not None:
            raise self.frame_error
        return self.frame

    @property
    def all_stopped(self):
        return all(t.stopped for t in self.tracks)


class FakeMediaDevices:
    def __init__(self, error=None, frame=FRAME, frame_error=None):
        self.error = error
        self.frame = frame
        self.frame_error = frame_error
        self.constraints = []
        self.streams = []

    async def get_user_media(self, constraints):
        self.constraints.append(constraints)
        if self.error is not None:
            raise self.error
        stream = FakeStream(self.frame, self.frame_error)
        self.streams.append(stream)
        return stream


class FakeCredentials:
    def __init__(self, available=True, raw_id=b"\x01\x02\x03\x04", error=None, delay=0.0):
        self.available = available
        self.delay = delay
        self.raw_id = raw_id
        self.error = error
        self.options = []

    async def is_user_verifying_platform_authenticator_available(self):
        return self.available

    async def create(self, options):
        self.options.append(options)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return PublicKeyCredential(
            id=base64.urlsafe_b64encode(self.raw_id).decode().rstrip("="), raw_id=self.raw_id
        )


class FakeCheckInServer:
    """httpx handler standing in for the check-in API"""

    def __init__(self, history=None, history_status=200, submit_status=200, submit_error="Server unavailable"):
        self.history = list(history or [])
        self.history_status = history_status
        self.submit_status = submit_status
        self.submit_error = submit_error
        self.requests = []

    @property
    def submissions(self):
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "GET" and request.url.path.endswith("/check-ins"):
            if self.history_status >= 400:
                return httpx.Response(self.history_status, json={"detail": "Failed to fetch check-ins"})
            return httpx.Response(200, json=self.history)

        if request.method == "POST" and request.url.path == "/api/check-ins":
            if self.submit_status >= 400:
                return httpx.Response(self.submit_status, json={"detail": self.submit_error})
            body = json.loads(request.content)
            stored = {"id": len(self.history) + 1, **body}
            self.history.insert(0, stored)
            return httpx.Response(200, json=stored)

        return httpx.Response(404, json={"detail": "Not found"})

    def client(self) -> PortalApiClient:
        return PortalApiClient(base_url="http://testserver", transport=httpx.MockTransport(self))
