"""Formatting helpers shared by email and SMS templates."""
from datetime import datetime, date
from typing import Union, Optional
import logging

logger = logging.getLogger(__name__)


def format_amount(value: Union[int, float, str, None]) -> str:
    """Format a money amount with two decimals ($12.50)."""
    try:
        return f"${float(value or 0):.2f}"
    except (TypeError, ValueError):
        return f"${value}"


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """Return singular when count == 1, otherwise plural."""
    if count == 1:
        return singular
    return plural or f"{singular}s"


def format_long_date(value: Union[datetime, date, str, None]) -> str:
    """Long date: January 9, 2026."""
    parsed = _coerce_date(value)
    if parsed is None:
        return str(value or "")
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def format_email_date(value: Union[datetime, date, str, None]) -> str:
    """Short email date: "2026-01-09" -> "Jan 9, 2026".

    YYYY-MM-DD strings are treated as calendar dates (no timezone shift).
    Unparseable input is returned unchanged.
    """
    parsed = _coerce_date(value)
    if parsed is None:
        return str(value or "")
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_long_datetime(value: Union[datetime, str, None]) -> str:
    """Long date with time: January 9, 2026 at 3:05 PM."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if not isinstance(value, datetime):
        return str(value or "")
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{format_long_date(value)} at {hour}:{value.minute:02d} {meridiem}"


def mask_phone(phone: Optional[str]) -> str:
    if not phone:
        return ""
    return f"{phone[:7]}***"


def _coerce_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10]) if len(text) >= 10 and text[4] == "-" else None
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        logger.debug(f"Unparseable date value: {value}")
        return None
