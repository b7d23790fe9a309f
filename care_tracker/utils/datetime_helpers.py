"""
Clock and timestamp helpers

All stored timestamps are timezone-aware UTC datetimes. Services take the
clock as a callable so tests can pin it.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Coerce a stored timestamp to an aware datetime

    Accepts datetimes (naive ones are assumed UTC) and ISO 8601 strings,
    including the trailing 'Z' form. Unparseable values yield None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable timestamp: {value!r}")
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
