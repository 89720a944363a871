"""GPS location acquisition for check-ins"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ..services.geolocation_service import format_location
from .devices import Geolocation, GeolocationErrorCode, GeolocationPositionError, PositionOptions
from .errors import LocationError

logger = logging.getLogger(__name__)

HIGH_ACCURACY = PositionOptions(enable_high_accuracy=True, timeout=15.0, maximum_age=30.0)

_ERROR_REASONS = {
    GeolocationErrorCode.PERMISSION_DENIED: LocationError.PERMISSION_DENIED,
    GeolocationErrorCode.POSITION_UNAVAILABLE: LocationError.POSITION_UNAVAILABLE,
    GeolocationErrorCode.TIMEOUT: LocationError.TIMEOUT,
}


@dataclass(frozen=True)
class LocationFix:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    accuracy_source: str = "high-precision"

    @property
    def location(self) -> str:
        return format_location(self.latitude, self.longitude)


class LocationAcquirer:
    """One-shot high accuracy position fix; retries are left to the user"""

    def __init__(self, geolocation: Optional[Geolocation], options: PositionOptions = HIGH_ACCURACY):
        self.geolocation = geolocation
        self.options = options

    async def acquire(self) -> LocationFix:
        """
        Request a position fix.

        Raises:
            LocationError: permission denied, no signal, timeout or no GPS support
        """
        if self.geolocation is None:
            raise LocationError(LocationError.UNSUPPORTED)

        try:
            coords = await asyncio.wait_for(
                self.geolocation.get_current_position(self.options), timeout=self.options.timeout
            )
        except GeolocationPositionError as e:
            logger.warning(f"📍 Geolocation failed: {e.code.name} {e.message}")
            raise LocationError(_ERROR_REASONS.get(e.code, LocationError.POSITION_UNAVAILABLE)) from e
        except asyncio.TimeoutError as e:
            logger.warning(f"📍 Geolocation timed out after {self.options.timeout}s")
            raise LocationError(LocationError.TIMEOUT) from e
        except Exception as e:
            logger.error(f"❌ Geolocation adapter error: {e}")
            raise LocationError(LocationError.POSITION_UNAVAILABLE) from e

        fix = LocationFix(latitude=coords.latitude, longitude=coords.longitude, accuracy=coords.accuracy)
        logger.info(f"📍 Location acquired: {fix.location} (accuracy={fix.accuracy})")
        return fix
