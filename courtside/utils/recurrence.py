"""
Recurring availability: rule model, expansion into concrete occurrences, and the
stable string encoding stored on every expanded slot (the recurrence signature).
"""

import calendar
import enum
import json
import warnings
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterator, List, Optional, Tuple

from courtside.exceptions import InvalidInterval, RecurrenceBoundsExceeded
from courtside.utils.intervals import DateInterval, parse_date
from courtside.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_HARD_CAP = 366

# 0 = Sunday ... 6 = Saturday, matching the stored rule format
WEEKDAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']


class RecurrencePattern(enum.Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class RecurrenceRule:
    pattern: RecurrencePattern = RecurrencePattern.NONE
    interval: int = 1
    end_date: Optional[date] = None
    days_of_week: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.pattern, RecurrencePattern):
            try:
                object.__setattr__(self, 'pattern', RecurrencePattern(self.pattern))
            except ValueError:
                raise InvalidInterval(f"Unknown recurrence pattern: {self.pattern!r}")
        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval < 1:
            raise InvalidInterval("Recurrence interval must be a positive integer")
        if self.end_date is not None and not isinstance(self.end_date, date):
            object.__setattr__(self, 'end_date', parse_date(self.end_date))
        days = tuple(self.days_of_week or ())
        if any(isinstance(d, bool) or not isinstance(d, int) for d in days):
            raise InvalidInterval("Days of week must be whole numbers")
        days = tuple(sorted(set(days)))
        if any(d not in range(7) for d in days):
            raise InvalidInterval("Days of week must be between 0 (Sunday) and 6 (Saturday)")
        object.__setattr__(self, 'days_of_week', days)

    @property
    def is_recurring(self) -> bool:
        return self.pattern is not RecurrencePattern.NONE


def js_weekday(on: date) -> int:
    """Weekday number with Sunday = 0"""
    return (on.weekday() + 1) % 7


def add_months(origin: date, months: int) -> date:
    """Same day-of-month ``months`` later, clamped to the target month's last day"""
    month_index = origin.month - 1 + months
    year = origin.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(origin.day, last_day))


def _candidate_dates(origin: date, rule: RecurrenceRule) -> Iterator[date]:
    """Unbounded, strictly increasing stream of dates produced by the rule"""
    k = 0
    if rule.pattern is RecurrencePattern.DAILY:
        while True:
            yield origin + timedelta(days=k * rule.interval)
            k += 1
    elif rule.pattern is RecurrencePattern.WEEKLY:
        if not rule.days_of_week:
            while True:
                yield origin + timedelta(weeks=k * rule.interval)
                k += 1
        else:
            # Every listed weekday of each active week (weeks start on Sunday)
            week_start = origin - timedelta(days=js_weekday(origin))
            while True:
                active_week = week_start + timedelta(weeks=k * rule.interval)
                for day in rule.days_of_week:
                    candidate = active_week + timedelta(days=day)
                    if candidate >= origin:
                        yield candidate
                k += 1
    elif rule.pattern is RecurrencePattern.MONTHLY:
        while True:
            yield add_months(origin, k * rule.interval)
            k += 1
    else:
        yield origin


class Occurrences(Sequence):
    """
    Finite, restartable sequence of occurrences for one rule.

    Materialized eagerly up to the hard cap; ``truncated`` tells whether the
    rule would have produced more occurrences than were kept.
    """

    def __init__(self, origin: DateInterval, rule: RecurrenceRule, hard_cap: int):
        self.origin = origin
        self.rule = rule
        self.hard_cap = hard_cap
        self._items, self.truncated = self._materialize()

    def _materialize(self) -> Tuple[List[DateInterval], bool]:
        if not self.rule.is_recurring:
            return [self.origin], False

        items = []
        for on in _candidate_dates(self.origin.date, self.rule):
            if self.rule.end_date is not None and on > self.rule.end_date:
                return items, False
            if len(items) >= self.hard_cap:
                return items, True
            items.append(self.origin.with_date(on))
        return items, False

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self):
        return len(self._items)

    def __repr__(self):
        return f"<Occurrences {len(self)} of {self.rule.pattern.value}{' (truncated)' if self.truncated else ''}>"


def expand(origin: DateInterval, rule: RecurrenceRule, hard_cap: int = DEFAULT_HARD_CAP) -> Occurrences:
    """
    Expand a rule anchored at ``origin`` into concrete occurrences.

    Each occurrence keeps the origin's start/end time; only the date advances.
    Expansion stops once ``rule.end_date`` is passed or ``hard_cap`` occurrences
    have been emitted. Hitting the cap emits a RecurrenceBoundsExceeded warning.
    """
    if hard_cap < 1:
        raise InvalidInterval("Recurrence hard cap must be at least 1")

    occurrences = Occurrences(origin, rule, hard_cap)
    if occurrences.truncated:
        message = (
            f"Recurrence from {origin.date.isoformat()} truncated at {hard_cap} occurrences"
        )
        logger.warning(message)
        warnings.warn(message, RecurrenceBoundsExceeded, stacklevel=2)
    return occurrences


def encode_rule(rule: RecurrenceRule) -> str:
    """Deterministic text form of a rule; the recurrence signature"""
    return json.dumps({
        'pattern': rule.pattern.value,
        'interval': rule.interval,
        'endDate': rule.end_date.isoformat() if rule.end_date else None,
        'daysOfWeek': list(rule.days_of_week),
    }, sort_keys=True, separators=(',', ':'))


def decode_rule(encoded: Optional[str]) -> Optional[RecurrenceRule]:
    """Inverse of encode_rule; returns None for empty or unreadable input"""
    if not encoded:
        return None
    try:
        data = json.loads(encoded)
        return RecurrenceRule(
            pattern=RecurrencePattern(data.get('pattern', 'none')),
            interval=int(data.get('interval', 1)),
            end_date=parse_date(data['endDate']) if data.get('endDate') else None,
            days_of_week=_days_of_week(data.get('daysOfWeek')),
        )
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.warning(f"Could not decode recurrence rule {encoded!r}: {str(e)}")
        return None


def _days_of_week(value) -> Tuple[int, ...]:
    if not value:
        return ()
    if not isinstance(value, (list, tuple)):
        raise InvalidInterval("daysOfWeek must be a list of weekday numbers")
    return tuple(value)


def rule_from_dict(data: Optional[dict]) -> RecurrenceRule:
    """Build a rule from request JSON ({pattern, interval, endDate, daysOfWeek})"""
    if not data:
        return RecurrenceRule()
    return RecurrenceRule(
        pattern=data.get('pattern', 'none'),
        interval=data.get('interval', 1),
        end_date=parse_date(data['endDate']) if data.get('endDate') else None,
        days_of_week=tuple(data.get('daysOfWeek') or ()),
    )


def describe_rule(rule: RecurrenceRule) -> str:
    """Human readable summary, e.g. 'Repeats every 2 weeks on Mon, Wed until 2025-03-01'"""
    if not rule.is_recurring:
        return 'Does not repeat'

    units = {
        RecurrencePattern.DAILY: ('daily', 'days'),
        RecurrencePattern.WEEKLY: ('weekly', 'weeks'),
        RecurrencePattern.MONTHLY: ('monthly', 'months'),
    }
    single, plural = units[rule.pattern]
    if rule.interval == 1:
        text = single
    else:
        text = f"every {rule.interval} {plural}"

    if rule.pattern is RecurrencePattern.WEEKLY and rule.days_of_week:
        text += ' on ' + ', '.join(WEEKDAY_NAMES[d] for d in rule.days_of_week)

    if rule.end_date:
        text += f" until {rule.end_date.isoformat()}"

    return f"Repeats {text}"
