"""
Tolerant date parsing for scraped legislative records.

The HCDN search pages mix ISO dates, DD/MM/YYYY dates and free text, so
parsing never raises: anything unrecognized yields None.

Responsibility: Convert scraped date values to date objects and wire strings
"""

from datetime import date, datetime
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str, None]

# Tried in order; DD/MM/YYYY is the Argentine convention used by HCDN.
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%Y/%m/%d",
    "%d-%m-%Y",
)


def parse_date(value: DateLike) -> Optional[date]:
    """
    Parse a scraped date value.

    Supports:
    - date / datetime objects
    - ISO: 2013-05-10, 2013-05-10T00:00:00 (time part ignored)
    - Short: 10/05/2013 (DD/MM/YYYY)

    Returns:
        Parsed date, or None when the value is empty or unrecognized
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = value.strip()
    if not text:
        return None

    # ISO timestamps: keep the date part only
    if len(text) > 10 and text[4:5] == "-" and text[10:11] in ("T", " "):
        text = text[:10]

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    logger.debug(f"Could not parse date: {value!r}")
    return None


def to_wire_date(value: DateLike) -> Optional[str]:
    """Render a date-like value the way it is sent to the store"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value
