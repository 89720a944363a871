"""Decides whether a check-in is the client's first (biometric required)"""

import logging

from .api_client import ApiError, PortalApiClient
from .query_cache import QueryCache

logger = logging.getLogger(__name__)


def check_ins_key(client_id: int) -> tuple:
    return ("/api/clients", client_id, "check-ins")


class FirstCheckInDetector:
    def __init__(self, api: PortalApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def detect(self, client_id: int) -> bool:
        """
        True when the client has no recorded check-ins.

        A failed lookup also counts as a first check-in so the stricter
        biometric requirement applies.
        """
        try:
            records = await self.cache.fetch(
                check_ins_key(client_id), lambda: self.api.get_client_check_ins(client_id)
            )
        except ApiError as e:
            logger.warning(
                f"⚠️ Could not load check-in history for client {client_id}, "
                f"requiring biometric verification: {e.message}"
            )
            return True

        is_first = not records
        logger.info(f"Client {client_id} has {len(records or [])} prior check-ins (first={is_first})")
        return is_first
