"""ScheduleSpec — parse and evaluate ``<Day|Daily>@<HH:MM>`` declarations.

Examples: ``"Daily@04:00"``, ``"Monday@08:30"``, ``"sunday@00:00"``.
All times are UTC.  A declaration that does not parse yields ``None`` and the
owning task simply never fires.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime

from apscheduler.triggers.cron import CronTrigger

DAILY = "daily"

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_TIME_RE = re.compile(r"([0-9]{2}):([0-9]{2})")


@dataclass(frozen=True)
class ScheduleSpec:
    """A parsed schedule declaration.

    Attributes:
        text: The declaration as written, for logging.
        hour: Hour of day, 0-23 (UTC).
        minute: Minute of hour, 0-59.
        day_of_week: Weekday index (Monday=0 … Sunday=6), or None for daily.
    """

    text: str
    hour: int
    minute: int
    day_of_week: int | None = None

    @property
    def is_daily(self) -> bool:
        return self.day_of_week is None

    def matches(self, instant: datetime) -> bool:
        """Return True if *instant* falls in this spec's minute.

        Naive datetimes are taken as UTC.  Seconds are ignored.
        """
        instant = to_utc(instant)
        if instant.hour != self.hour or instant.minute != self.minute:
            return False
        if self.day_of_week is None:
            return True
        return instant.weekday() == self.day_of_week

    def as_trigger(self) -> CronTrigger:
        """Build the equivalent APScheduler cron trigger (UTC)."""
        day_of_week = "*" if self.day_of_week is None else str(self.day_of_week)
        return CronTrigger(
            day_of_week=day_of_week,
            hour=self.hour,
            minute=self.minute,
            second=0,
            timezone="UTC",
        )

    def next_run_after(self, instant: datetime) -> datetime:
        """Return the first matching minute at or after *instant*, in UTC."""
        fire_time = self.as_trigger().get_next_fire_time(None, to_utc(instant))
        return fire_time.astimezone(UTC)


def to_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def truncate_to_minute(instant: datetime) -> datetime:
    """Convert to UTC and drop seconds and microseconds."""
    return to_utc(instant).replace(second=0, microsecond=0)


def parse_schedule(text: object) -> ScheduleSpec | None:
    """Parse a declaration, returning None when it is malformed.

    Never raises.  Rejects a missing or repeated ``@``, any time that is not
    exactly two-digit ``HH:MM`` in range, and unknown day tokens.
    """
    if not isinstance(text, str) or not text.strip():
        return None
    if text.count("@") != 1:
        return None

    day_part, _, time_part = text.partition("@")
    day_token = day_part.strip().lower()
    time_match = _TIME_RE.fullmatch(time_part.strip())
    if time_match is None:
        return None

    hour, minute = int(time_match.group(1)), int(time_match.group(2))
    if hour > 23 or minute > 59:
        return None

    if day_token == DAILY:
        day_of_week = None
    elif day_token in WEEKDAYS:
        day_of_week = WEEKDAYS.index(day_token)
    else:
        return None

    return ScheduleSpec(text=text, hour=hour, minute=minute, day_of_week=day_of_week)


def is_due(schedule: str, instant: datetime) -> bool:
    """Shortcut: parse *schedule* and test it against *instant*."""
    spec = parse_schedule(schedule)
    return spec is not None and spec.matches(instant)
