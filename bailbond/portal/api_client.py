"""HTTP client for the check-in endpoints"""

import logging
from typing import Any, Optional

import httpx

from ..config import PORTAL_API_BASE_URL, PORTAL_HTTP_TIMEOUT

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response or transport failure talking to the check-in API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    """Pull the server's message out of an error body"""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        detail = body.get("detail", body.get("message"))
        if isinstance(detail, str):
            return detail
        if isinstance(detail, dict) and isinstance(detail.get("message"), str):
            return detail["message"]
        if isinstance(detail, list) and detail and isinstance(detail[0], dict):
            return str(detail[0].get("msg", f"HTTP {response.status_code}"))
    return f"HTTP {response.status_code}"


class PortalApiClient:
    def __init__(
        self,
        base_url: str = PORTAL_API_BASE_URL,
        timeout: float = PORTAL_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {url} failed: {e}")
            raise ApiError("Unable to reach the check-in service. Please check your connection.") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"⚠️ {method} {url} returned {response.status_code}: {message}")
            raise ApiError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Invalid response from the check-in service", response.status_code) from e

    async def get_client_check_ins(self, client_id: int) -> list[dict]:
        return await self._request("GET", f"/api/clients/{client_id}/check-ins")

    async def submit_check_in(self, payload: dict) -> dict:
        return await self._request("POST", "/api/check-ins", json=payload)
