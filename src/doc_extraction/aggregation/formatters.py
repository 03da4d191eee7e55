"""Display formatting for extracted values and confidence scores."""

import math
from datetime import date, datetime
from enum import Enum
from typing import Optional

from ..config import Config
from ..models import DataType

__all__ = [
    "NOT_AVAILABLE",
    "ConfidenceBucket",
    "parse_date",
    "format_date",
    "format_value",
    "format_confidence",
    "confidence_bucket"
]

NOT_AVAILABLE = "N/A"

# Accepted in addition to ISO 8601 dates and timestamps.
_DATE_FORMATS = (
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


class ConfidenceBucket(str, Enum):
    """Visual severity of a confidence score."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def parse_date(value: str) -> Optional[date]:
    """Parse a date or timestamp string, returning None when it is not one.

    Timestamps keep the calendar date they were written with; no time
    zone conversion takes place.
    """
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_date(value: date) -> str:
    """Render a date in the US short form, e.g. ``1/15/2024``."""
    return f"{value.month}/{value.day}/{value.year}"


def format_value(raw_value: Optional[str], data_type: str) -> str:
    """Format a raw extracted value for display.

    Args:
        raw_value: Value as stored, None when nothing was extracted
        data_type: Data type of the field; unknown types pass through

    Returns:
        ``"N/A"`` for a missing value; a localized date for parseable
        dates; ``"Yes"``/``"No"`` for booleans; otherwise the raw value
    """
    if raw_value is None:
        return NOT_AVAILABLE

    if data_type == DataType.DATE.value:
        parsed = parse_date(raw_value)
        return format_date(parsed) if parsed is not None else raw_value

    if data_type == DataType.BOOLEAN.value:
        return "Yes" if raw_value.lower() == "true" else "No"

    return raw_value


def format_confidence(score: Optional[float]) -> str:
    """Render a confidence score as a whole percentage, e.g. ``87%``."""
    if score is None:
        return NOT_AVAILABLE
    return f"{math.floor(score * 100 + 0.5)}%"


def confidence_bucket(score: Optional[float]) -> ConfidenceBucket:
    """Bucket a confidence score; a missing score counts as low."""
    if score is not None and score > Config.HIGH_CONFIDENCE_THRESHOLD:
        return ConfidenceBucket.HIGH
    if score is not None and score > Config.MEDIUM_CONFIDENCE_THRESHOLD:
        return ConfidenceBucket.MEDIUM
    return ConfidenceBucket.LOW
