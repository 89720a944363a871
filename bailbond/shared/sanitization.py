import html
from typing import Optional

MAX_NOTES_LENGTH = 2000


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters so free text is safe to render in staff dashboards.
    Returns None if input is None.
    """
    if value is None:
        return None
    return html.escape(str(value), quote=True)


def sanitize_notes(value: Optional[str], max_length: int = MAX_NOTES_LENGTH) -> Optional[str]:
    """
    Strip, length-check and escape check-in notes.

    Blank notes collapse to None.

    Raises:
        ValueError: If notes exceed max_length
    """
    if value is None:
        return None

    value = str(value).strip()
    if not value:
        return None

    if len(value) > max_length:
        raise ValueError(f"Notes exceed maximum length of {max_length} characters")

    return sanitize_string(value)
