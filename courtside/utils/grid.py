"""
Quarter-hour schedule grid.

Merges a user's availability, their pending/accepted match invites and other
players' open slots into one classification per 15-minute cell. Precedence per
quarter, highest first:

    invite (pending/accepted)  >  available  >  others(count)  >  unavailable

Classification is recomputed from the inputs on every call; nothing is cached
across calls and nothing is written back.
"""

import enum
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from courtside.models.match_invite import BLOCKING_STATUSES, InviteStatus
from courtside.utils.intervals import hours_touched, parse_date, quarters_covered

GridKey = Tuple[str, int]


class QuarterKind(enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    INVITE = "invite"
    OTHERS = "others"


@dataclass(frozen=True)
class QuarterInfo:
    kind: QuarterKind
    status: Optional[InviteStatus] = None
    invite_id: Optional[str] = None
    count: int = 0

    @classmethod
    def unavailable(cls) -> 'QuarterInfo':
        return cls(QuarterKind.UNAVAILABLE)

    @classmethod
    def available(cls) -> 'QuarterInfo':
        return cls(QuarterKind.AVAILABLE)

    @classmethod
    def invite(cls, status: InviteStatus, invite_id: str) -> 'QuarterInfo':
        return cls(QuarterKind.INVITE, status=status, invite_id=invite_id)

    @classmethod
    def others(cls, count: int) -> 'QuarterInfo':
        return cls(QuarterKind.OTHERS, count=count)

    def to_dict(self) -> dict:
        data = {'type': self.kind.value}
        if self.kind is QuarterKind.INVITE:
            data['status'] = self.status.value
            data['invite_id'] = self.invite_id
        elif self.kind is QuarterKind.OTHERS:
            data['count'] = self.count
        return data


def grid_key(on, hour: int) -> GridKey:
    return parse_date(on).isoformat(), hour


def _invite_rank(status: InviteStatus) -> int:
    # Accepted is the firmer fact when two invites share a quarter
    return 1 if status is InviteStatus.ACCEPTED else 0


class ScheduleGrid:
    """Per (ISO date, hour) buckets of quarter coverage, built once from the inputs"""

    def __init__(self, slots: Iterable = (), invites: Iterable = (), others: Iterable = (),
                 owner_id: Optional[str] = None):
        self.owner_id = owner_id
        self._available: Dict[GridKey, List[bool]] = defaultdict(lambda: [False] * 4)
        self._invites: Dict[GridKey, List[Optional[QuarterInfo]]] = defaultdict(lambda: [None] * 4)
        self._others: Dict[GridKey, List[set]] = defaultdict(lambda: [set(), set(), set(), set()])

        for slot in slots:
            if slot.is_open:
                self._mark_available(slot.interval)

        for invite in invites:
            if invite.status in BLOCKING_STATUSES:
                self._mark_invite(invite)

        for slot in others:
            if slot.is_open and slot.user_id != owner_id:
                self._mark_other(slot)

    def _mark_available(self, interval):
        for hour in hours_touched(interval):
            bucket = self._available[grid_key(interval.date, hour)]
            for q, covered in enumerate(quarters_covered(interval, hour)):
                if covered:
                    bucket[q] = True

    def _mark_invite(self, invite):
        interval = invite.interval
        info = QuarterInfo.invite(invite.status, invite.id)
        for hour in hours_touched(interval):
            bucket = self._invites[grid_key(interval.date, hour)]
            for q, covered in enumerate(quarters_covered(interval, hour)):
                if not covered:
                    continue
                current = bucket[q]
                if current is None or _invite_rank(info.status) > _invite_rank(current.status):
                    bucket[q] = info

    def _mark_other(self, slot):
        interval = slot.interval
        for hour in hours_touched(interval):
            bucket = self._others[grid_key(interval.date, hour)]
            for q, covered in enumerate(quarters_covered(interval, hour)):
                if covered:
                    bucket[q].add(slot.user_id)

    def quarters(self, on, hour: int) -> List[QuarterInfo]:
        """Classification of the four quarters of ``hour`` on ``on``"""
        key = grid_key(on, hour)
        invites = self._invites.get(key)
        available = self._available.get(key)
        others = self._others.get(key)

        result = []
        for q in range(4):
            if invites and invites[q] is not None:
                result.append(invites[q])
            elif available and available[q]:
                result.append(QuarterInfo.available())
            elif others and others[q]:
                result.append(QuarterInfo.others(len(others[q])))
            else:
                result.append(QuarterInfo.unavailable())
        return result

    def is_hour_available(self, on, hour: int) -> bool:
        return any(q.kind is QuarterKind.AVAILABLE for q in self.quarters(on, hour))

    def has_invite_in_hour(self, on, hour: int) -> bool:
        return any(q.kind is QuarterKind.INVITE for q in self.quarters(on, hour))

    def day(self, on, hours: Iterable[int]) -> Dict[int, List[QuarterInfo]]:
        return {hour: self.quarters(on, hour) for hour in hours}

    def to_dict(self, start: date, days: int, start_hour: int, end_hour: int,
                show_weekend: bool = True, show_weekday: bool = True) -> dict:
        """Serializable grid for ``days`` consecutive dates from ``start``"""
        hours = range(start_hour, end_hour)
        result = {}
        for on in visible_days(start, days, show_weekend, show_weekday):
            result[on.isoformat()] = {
                str(hour): [q.to_dict() for q in quarters]
                for hour, quarters in self.day(on, hours).items()
            }
        return result


def visible_days(start: date, days: int, show_weekend: bool = True,
                 show_weekday: bool = True) -> List[date]:
    """Consecutive dates, filtered by the weekend/weekday display toggles"""
    result = []
    for offset in range(days):
        on = start + timedelta(days=offset)
        is_weekend = on.weekday() >= 5
        if is_weekend and not show_weekend:
            continue
        if not is_weekend and not show_weekday:
            continue
        result.append(on)
    return result


def classify(on, hour: int, slots: Iterable, invites: Iterable, others: Iterable = ()) -> List[QuarterInfo]:
    """Classify the four quarters of one (date, hour) cell"""
    return ScheduleGrid(slots, invites, others).quarters(on, hour)
