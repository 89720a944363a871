"""
Geolocation helpers shared by the check-in API and the client portal

Check-in locations travel as "lat, lon" strings with six decimal places.
The agency only writes bonds inside one jurisdiction, so every accepted fix
is also compared against the configured bounding box.
"""

import logging

from ..config import (
    JURISDICTION_MAX_LAT,
    JURISDICTION_MAX_LON,
    JURISDICTION_MIN_LAT,
    JURISDICTION_MIN_LON,
    JURISDICTION_NAME,
)

logger = logging.getLogger(__name__)

COORDINATE_PRECISION = 6


def format_location(latitude: float, longitude: float) -> str:
    """Canonical location string, e.g. "21.306944, -157.858333" """
    return f"{latitude:.{COORDINATE_PRECISION}f}, {longitude:.{COORDINATE_PRECISION}f}"


def parse_location(location: str) -> tuple[float, float]:
    """
    Parse a "lat, lon" location string.

    Raises:
        ValueError: If the string is not two numbers or they are out of range
    """
    if not location or not location.strip():
        raise ValueError("Location is required for check-in")

    parts = [p.strip() for p in location.split(",")]
    if len(parts) != 2:
        raise ValueError("Location must be formatted as 'latitude, longitude'")

    try:
        latitude, longitude = float(parts[0]), float(parts[1])
    except ValueError as e:
        raise ValueError("Location coordinates must be numeric") from e

    if not -90.0 <= latitude <= 90.0:
        raise ValueError(f"Latitude {latitude} is out of range")
    if not -180.0 <= longitude <= 180.0:
        raise ValueError(f"Longitude {longitude} is out of range")

    return latitude, longitude


def is_within_jurisdiction(latitude: float, longitude: float) -> bool:
    """Check a fix against the agency's jurisdiction bounding box"""
    inside = (
        JURISDICTION_MIN_LAT <= latitude <= JURISDICTION_MAX_LAT
        and JURISDICTION_MIN_LON <= longitude <= JURISDICTION_MAX_LON
    )
    if not inside:
        logger.debug(f"📍 {format_location(latitude, longitude)} is outside {JURISDICTION_NAME}")
    return inside
