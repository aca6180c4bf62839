"""Slot grid and calendar rules for the shared booking calendar.

Every instant handled here is timezone-aware. UTC is the reference frame used for
storage and comparison; display timezones only project an instant onto the local
wall clock of whoever is looking at it. Nothing in this module reads the current
time: callers pass ``now`` explicitly.
"""
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from app.core.config import settings
from app.core.errors import ConfigurationError, WeekOutOfRangeError

logger = logging.getLogger(__name__)

_OFFSET_RE = re.compile(r"^(?P<sign>[+-])(?P<hours>\d{2}):?(?P<minutes>\d{2})$")
_LEGACY_ZONE_PREFIXES = ("Etc/", "SystemV/", "posix/", "right/")


@dataclass(frozen=True)
class ResolvedZone:
    name: str
    tz: tzinfo


UTC_ZONE = ResolvedZone("UTC", UTC)


def to_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValueError(f"naive datetime has no offset: {instant.isoformat()}")
    return instant.astimezone(UTC)


def format_offset(instant: datetime) -> str:
    """Render the offset carried by an aware datetime as ``+HH:MM``."""
    offset = instant.utcoffset()
    if offset is None:
        raise ValueError(f"naive datetime has no offset: {instant.isoformat()}")
    total_minutes = int(offset.total_seconds()) // 60
    sign = "-" if total_minutes < 0 else "+"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def _parse_offset(value: str) -> timedelta:
    if value.upper() == "Z":
        return timedelta(0)
    match = _OFFSET_RE.match(value)
    if not match:
        raise ConfigurationError(f"Unrecognised timezone: {value!r}")
    hours, minutes = int(match["hours"]), int(match["minutes"])
    if hours > 23 or minutes > 59:
        raise ConfigurationError(f"Offset out of range: {value!r}")
    offset = timedelta(hours=hours, minutes=minutes)
    return -offset if match["sign"] == "-" else offset


@lru_cache(maxsize=1)
def _named_zones() -> tuple[str, ...]:
    return tuple(
        sorted(
            name
            for name in available_timezones()
            if "/" in name and not name.startswith(_LEGACY_ZONE_PREFIXES)
        )
    )


def _zone_for_offset(offset: timedelta, at: datetime) -> ResolvedZone:
    if offset == timedelta(0):
        return UTC_ZONE
    for name in _named_zones():
        zone = ZoneInfo(name)
        if at.astimezone(zone).utcoffset() == offset:
            return ResolvedZone(name, zone)
    raise ConfigurationError(f"No named timezone currently at offset {offset}")


def _resolve_strict(value: str, at: datetime) -> ResolvedZone:
    if value.upper() == "UTC":
        return UTC_ZONE
    if _OFFSET_RE.match(value) or value.upper() == "Z":
        return _zone_for_offset(_parse_offset(value), at)
    try:
        return ResolvedZone(value, ZoneInfo(value))
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ConfigurationError(f"Unknown timezone: {value!r}") from e


def resolve_timezone(value: str | None, at: datetime) -> ResolvedZone:
    """Resolve an IANA zone name or a fixed ``+HH:MM`` offset.

    An offset is mapped to the first named zone whose offset at ``at`` matches it.
    Empty input means the configured default zone. Anything unusable (unknown name,
    malformed text, an offset no named zone currently has) falls back to UTC rather
    than failing the request.
    """
    value = (value or "").strip() or settings.default_timezone
    try:
        return _resolve_strict(value, at)
    except ConfigurationError as e:
        logger.warning("Timezone %r unusable, falling back to UTC: %s", value, e)
        return UTC_ZONE


def next_monday(today: date) -> date:
    """First Monday strictly after ``today``."""
    return today + timedelta(days=7 - today.weekday())


def week_anchor(now: datetime, explicit: date | str | None = None) -> date:
    """Date a weekly slot query starts from.

    Without an explicit date this is the start of the next ISO week, never the
    current one, so an unqualified query never offers same-week slots.
    """
    if explicit:
        if isinstance(explicit, datetime):
            anchor = explicit.date()
        elif isinstance(explicit, date):
            anchor = explicit
        else:
            anchor = date.fromisoformat(explicit)
        _check_window_fits(anchor)
        return anchor
    return next_monday(to_utc(now).date())


def _check_window_fits(anchor: date) -> None:
    # One spare day each side: local slots may land on the neighbouring UTC day
    if anchor <= date.min or (date.max - anchor).days < settings.booking_window_days:
        raise WeekOutOfRangeError(anchor)


def window_days(anchor: date, days: int | None = None) -> Iterator[date]:
    """Business days among the calendar days starting at ``anchor``."""
    for i in range(settings.booking_window_days if days is None else days):
        day = anchor + timedelta(days=i)
        if day.weekday() < 5:
            yield day


def slot_start_times() -> list[time]:
    step = settings.slot_duration_minutes
    first = settings.business_start_hour * 60
    return [
        time(minute // 60, minute % 60)
        for minute in range(first, settings.last_slot_start_minute + 1, step)
    ]


def slots_for_week(zone: ResolvedZone, anchor: date) -> list[datetime]:
    """UTC start instants of every slot in the window, day-major then time."""
    starts = slot_start_times()
    slots: list[datetime] = []
    for day in window_days(anchor):
        for start in starts:
            local = datetime.combine(day, start, tzinfo=zone.tz)
            slots.append(local.astimezone(UTC))
    return slots


def is_aligned(instant: datetime) -> bool:
    utc = to_utc(instant)
    return (
        utc.minute % settings.slot_duration_minutes == 0
        and utc.second == 0
        and utc.microsecond == 0
    )


def is_weekday(instant: datetime, tz: tzinfo) -> bool:
    return instant.astimezone(tz).weekday() < 5


def is_within_business_hours(instant: datetime, tz: tzinfo) -> bool:
    """Weekday, and the local start lies between opening and the last slot start."""
    local = instant.astimezone(tz)
    if local.weekday() >= 5:
        return False
    minute_of_day = local.hour * 60 + local.minute
    return settings.business_start_hour * 60 <= minute_of_day <= settings.last_slot_start_minute


def is_future(instant: datetime, now: datetime) -> bool:
    return to_utc(instant) > to_utc(now)
