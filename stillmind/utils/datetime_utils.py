from datetime import date, datetime
from typing import Union

import pytz

UTC = pytz.utc


def now_utc() -> datetime:
    return datetime.now(UTC)


def ensure_aware(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return UTC.localize(dt)
    return dt


def to_iso(dt: datetime) -> str:
    return ensure_aware(dt).isoformat()


def parse_iso(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return ensure_aware(value)
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO-8601 string, got {type(value).__name__}")
    # fromisoformat on older interpreters does not understand a trailing Z
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(value))


def utc_day(dt: datetime) -> date:
    return ensure_aware(dt).astimezone(UTC).date()


def parse_date(date_str: str, fmt: str = "%Y-%m-%d") -> date:
    return datetime.strptime(date_str, fmt).date()


def format_seconds(total_seconds: int) -> str:
    minutes, seconds = divmod(max(0, int(total_seconds)), 60)
    return f"{minutes:02d}:{seconds:02d}"
