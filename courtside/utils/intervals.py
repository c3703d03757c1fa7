"""
Interval algebra over naive local dates and minutes-since-midnight.

Intervals are half-open: ``[start, end)``. Touching endpoints do not overlap.
Intervals crossing midnight are not representable; callers split them at the
day boundary before construction.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Tuple, Union

from courtside.exceptions import InvalidInterval

MINUTES_PER_DAY = 24 * 60
QUARTER_MINUTES = 15

_TIME_PATTERN = re.compile(r'^(\d{2}):(\d{2})(?::(\d{2}))?$')

TimeLike = Union[str, time, int]
DateLike = Union[str, date]


def parse_time(value: TimeLike) -> int:
    """
    Convert "HH:MM" / "HH:MM:SS" (or a datetime.time) to minutes since midnight.
    Seconds are dropped for comparison purposes.
    """
    if isinstance(value, bool):
        raise InvalidInterval(f"Invalid time of day: {value!r}")
    if isinstance(value, int):
        minutes = value
    elif isinstance(value, time):
        minutes = value.hour * 60 + value.minute
    elif isinstance(value, str):
        match = _TIME_PATTERN.match(value.strip())
        if not match:
            raise InvalidInterval(f"Invalid time of day: {value!r}")
        hours, mins, secs = int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)
        if hours > 23 or mins > 59 or secs > 59:
            raise InvalidInterval(f"Invalid time of day: {value!r}")
        minutes = hours * 60 + mins
    else:
        raise InvalidInterval(f"Invalid time of day: {value!r}")

    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidInterval(f"Time of day out of range: {value!r}")
    return minutes


def format_time(minutes: int, with_seconds: bool = True) -> str:
    """Emit minutes since midnight in the storage wire format"""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidInterval(f"Time of day out of range: {minutes}")
    text = f"{minutes // 60:02d}:{minutes % 60:02d}"
    return f"{text}:00" if with_seconds else text


def normalize_time_string(value: str, with_seconds: bool = True) -> str:
    """
    Re-emit a wire time string in either form, keeping any seconds it already had.

    >>> normalize_time_string("09:00")
    '09:00:00'
    """
    parse_time(value)
    parts = value.strip().split(':')
    if with_seconds:
        return value.strip() if len(parts) == 3 else f"{value.strip()}:00"
    return ':'.join(parts[:2])


def to_time(minutes: int) -> time:
    """Minutes since midnight as a datetime.time (storage column type)"""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidInterval(f"Time of day out of range: {minutes}")
    return time(minutes // 60, minutes % 60)


def parse_date(value: DateLike) -> date:
    """Parse an ISO calendar date; no timezone conversion is applied"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise InvalidInterval(f"Invalid date: {value!r}")


@dataclass(frozen=True, order=True)
class DateInterval:
    """A time range on a single naive local date, ``start < end``"""

    date: date
    start: int
    end: int

    def __post_init__(self):
        if not isinstance(self.date, date):
            raise InvalidInterval(f"Invalid date: {self.date!r}")
        for value in (self.start, self.end):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInterval(f"Invalid time of day: {value!r}")
        if not 0 <= self.start < MINUTES_PER_DAY or not 0 <= self.end < MINUTES_PER_DAY:
            raise InvalidInterval(
                f"Time of day out of range: {self.start}-{self.end}"
            )
        if self.end <= self.start:
            raise InvalidInterval("End time must be after start time")

    @classmethod
    def parse(cls, on: DateLike, start: TimeLike, end: TimeLike) -> 'DateInterval':
        """Build an interval from wire values ("2025-01-06", "18:00", "19:00:00")"""
        return cls(parse_date(on), parse_time(start), parse_time(end))

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    @property
    def start_datetime(self) -> datetime:
        return datetime.combine(self.date, to_time(self.start))

    def with_date(self, on: date) -> 'DateInterval':
        return DateInterval(on, self.start, self.end)

    def to_dict(self, with_seconds: bool = True) -> dict:
        return {
            'date': self.date.isoformat(),
            'start_time': format_time(self.start, with_seconds),
            'end_time': format_time(self.end, with_seconds),
        }

    def __str__(self):
        return f"{self.date.isoformat()} {format_time(self.start, False)}-{format_time(self.end, False)}"


def overlaps(a: DateInterval, b: DateInterval) -> bool:
    """True iff both fall on the same date and share at least one minute"""
    return a.date == b.date and a.start < b.end and b.start < a.end


def quarters_covered(interval: DateInterval, hour: int) -> List[bool]:
    """Which 15-minute cells of clock hour ``hour`` intersect the interval"""
    hour_start = hour * 60
    hour_end = hour_start + 60

    if interval.end <= hour_start or interval.start >= hour_end:
        return [False, False, False, False]

    quarters = []
    for q in range(4):
        quarter_start = hour_start + q * QUARTER_MINUTES
        quarter_end = quarter_start + QUARTER_MINUTES
        quarters.append(interval.start < quarter_end and interval.end > quarter_start)
    return quarters


def hour_range(interval: DateInterval) -> Tuple[int, int]:
    """
    First and last clock hours touched by the interval.
    An interval ending exactly on the hour does not touch that hour.
    """
    first_hour = interval.start // 60
    last_hour = (interval.end - 1) // 60
    return first_hour, last_hour


def hours_touched(interval: DateInterval) -> range:
    first_hour, last_hour = hour_range(interval)
    return range(first_hour, last_hour + 1)


def is_in_past(interval: DateInterval, now: datetime) -> bool:
    """True when the interval's date+start is strictly before ``now``"""
    return interval.start_datetime < now.replace(tzinfo=None)
