import time
from datetime import date, datetime
from typing import Optional

DAY_SECONDS = 24 * 60 * 60


def now_ms() -> int:
    return int(time.time() * 1000)


def local_today() -> date:
    return datetime.now().date()


def to_date_string(value: date) -> str:
    return value.isoformat()


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string, returning None for anything unusable."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return None


def local_date_from_ms(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


def start_of_day(value: date) -> datetime:
    return datetime(value.year, value.month, value.day)
