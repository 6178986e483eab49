"""
Date helpers shared by the schemas and the review queue.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

_YMD = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_date(value: Any) -> Any:
    """
    Normalize a date-like value to a `date`.

    Accepts `date`, `datetime`, `YYYY-MM-DD` and ISO date-time strings
    (e.g. `2024-05-02T00:00:00.000Z`). Anything else is returned untouched so
    that field validation reports it.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if _YMD.match(text):
            return date.fromisoformat(text)
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return value
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO or `YYYY-MM-DD HH:MM:SS` timestamp; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00").replace(" ", "T", 1))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
