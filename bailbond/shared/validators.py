"""Shared validation utilities"""

import base64
import binascii
import re
from typing import Optional

DATA_URL_PATTERN = re.compile(r"^data:image/(jpeg|png|webp);base64,(?P<payload>[A-Za-z0-9+/=]+)$")


def validate_us_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize US phone number to E.164 format.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number in E.164 format (+1XXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    # Handle +1 prefix
    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits for US numbers")

    return f"+1{digits}"


def is_base64(value: str) -> bool:
    """True when value decodes as strict standard base64"""
    try:
        base64.b64decode(value, validate=True)
        return True
    except (binascii.Error, ValueError):
        return False


def validate_image_data_url(value: str) -> str:
    """
    Validate a captured still image encoded as a data URL.

    Raises:
        ValueError: If the value is not a base64 image data URL
    """
    match = DATA_URL_PATTERN.match(value or "")
    if not match or not is_base64(match.group("payload")):
        raise ValueError("Facial capture must be a base64 image data URL")
    return value


def validate_credential_id(value: str) -> str:
    """
    Validate a base64 encoded platform credential id.

    Raises:
        ValueError: If the value is empty or not base64
    """
    if not value or not is_base64(value):
        raise ValueError("Fingerprint capture must be a base64 credential id")
    return value
