"""
Date-key normalization.

Every "same day" comparison goes through date_key(): an instant is projected
onto the civil calendar of a timezone and rendered as YYYY-MM-DD.

Accepted inputs:
- aware datetime: converted to the target zone
- naive datetime: assumed UTC
- date: already a civil date, used as is

The timezone argument is an IANA identifier. None means the local zone:
Settings.TIMEZONE when configured, otherwise the host zone.
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from aurapulse.config import get_settings


class InvalidTimezoneError(ValueError):
    pass


@dataclass(frozen=True)
class DateParts:
    year: int
    month: int  # 1..12
    day: int
    weekday: int  # 0=Sun..6=Sat


@lru_cache(maxsize=256)
def _load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(f"Unknown timezone: {name!r}") from e


def resolve_zone(tz: str | None = None) -> tzinfo | None:
    """Return the zone for an identifier, or None for the host zone."""
    if tz:
        return _load_zone(tz)
    local = get_settings().TIMEZONE
    if local:
        return _load_zone(local)
    return None


def validate_timezone(tz: str | None) -> None:
    """Raise InvalidTimezoneError if tz is set and not a known IANA identifier."""
    if tz is not None:
        _load_zone(tz)


def to_zone(instant: datetime, tz: str | None = None) -> datetime:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_zone(tz))


def civil_date(value: date | datetime, tz: str | None = None) -> date:
    """Calendar date of value as observed in tz."""
    if isinstance(value, datetime):
        return to_zone(value, tz).date()
    resolve_zone(tz)
    return value


def date_key(value: date | datetime, tz: str | None = None) -> str:
    return civil_date(value, tz).isoformat()


def month_key(value: date | datetime, tz: str | None = None) -> str:
    d = civil_date(value, tz)
    return f"{d.year:04d}-{d.month:02d}"


def date_parts(value: date | datetime, tz: str | None = None) -> DateParts:
    d = civil_date(value, tz)
    # date.weekday() is Mon=0..Sun=6
    return DateParts(year=d.year, month=d.month, day=d.day, weekday=(d.weekday() + 1) % 7)


def parse_date_key(key: str) -> date | None:
    """Parse a YYYY-MM-DD key; malformed keys yield None."""
    try:
        return date.fromisoformat(key.strip()[:10])
    except (ValueError, AttributeError):
        return None


def day_bounds(day: date, tz: str | None = None) -> tuple[datetime, datetime]:
    """Local midnight .. 23:59:59.999999 of day in tz, as aware datetimes."""
    zone = resolve_zone(tz)
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time.max)
    if zone is None:
        return start.astimezone(), end.astimezone()
    return start.replace(tzinfo=zone), end.replace(tzinfo=zone)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, n: int) -> date:
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    last = last_day_of_month(year, month)
    day = min(d.day, last)
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Signed number of calendar months from start to end (days ignored)."""
    return (end.year - start.year) * 12 + (end.month - start.month)
