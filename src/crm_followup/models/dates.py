from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from crm_followup.models.schemas import DateInput

logger = logging.getLogger(__name__)


def to_local_datetime(value: DateInput) -> Optional[datetime]:
    """Normalise a datetime, date or ISO-8601 string to a naive local datetime.

    Returns None for empty or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        cleaned = str(value).strip()
        if not cleaned:
            return None
        if cleaned.endswith("Z"):
            cleaned = cleaned[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(cleaned)
        except ValueError:
            logger.warning("Ignoring unparseable date: %s", value)
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed
