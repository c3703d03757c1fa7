from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from config.config import settings
from courtside.exceptions import (
    ConflictError, IntervalInPast, SchedulingError, Unauthorized
)
from courtside.models import AvailabilitySlot
from courtside.models.availability import PrivacyLevel
from courtside.models.match_invite import BLOCKING_STATUSES
from courtside.utils.conflicts import blocking_intervals, find_conflicts, has_conflict
from courtside.utils.grid import QuarterInfo, ScheduleGrid
from courtside.utils.intervals import DateInterval, is_in_past, parse_date, parse_time, to_time
from courtside.utils.logger import get_logger, get_security_logger
from courtside.utils.recurrence import encode_rule, expand, rule_from_dict

logger = get_logger(__name__)
security_logger = get_security_logger()

EDITABLE_FIELDS = ('date', 'start_time', 'end_time', 'is_available', 'is_blocked', 'privacy_level', 'notes')
INTERVAL_FIELDS = ('date', 'start_time', 'end_time')


@dataclass
class CreationResult:
    """Outcome of creating one slot or a whole recurring series"""

    created: List[AvailabilitySlot]
    failed: Dict[str, str] = field(default_factory=dict)
    truncated: bool = False
    signature: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'created': [slot.to_dict() for slot in self.created],
            'created_count': len(self.created),
            'failed': self.failed,
            'truncated': self.truncated,
            'recurrence_rule': self.signature,
        }


@dataclass
class BulkResult:
    """
    Per-record outcome of a group edit or delete. Records are written one at a
    time, so a failure part way leaves the earlier writes committed.
    """

    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    records: List[AvailabilitySlot] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.succeeded)

    def to_dict(self) -> dict:
        return {
            'count': self.count,
            'succeeded': self.succeeded,
            'failed': self.failed,
        }


def _conflict_summary(dates: List[date]) -> str:
    shown = ', '.join(d.isoformat() for d in dates[:5])
    more = f" and {len(dates) - 5} more" if len(dates) > 5 else ""
    return f"Availability conflicts with existing schedule on {shown}{more}"


class AvailabilityService:
    """Service for a player's own availability"""

    def __init__(self, repository, hard_cap: int = None):
        self.repository = repository
        self.hard_cap = hard_cap or settings.RECURRENCE_HARD_CAP

    def list_availability(self, owner_id: str, start=None, end=None) -> List[AvailabilitySlot]:
        return self.repository.list_availability(
            owner_id,
            start=parse_date(start) if start else None,
            end=parse_date(end) if end else None
        )

    def create_availability(self, owner_id: str, data: Dict, now: datetime = None) -> CreationResult:
        """
        Create one slot, or one slot per occurrence of a recurring rule, all
        sharing the encoded rule as their recurrence signature.
        """
        origin = DateInterval.parse(data.get('date'), data.get('start_time'), data.get('end_time'))
        rule = rule_from_dict(data.get('recurrence'))
        privacy = self._privacy(data.get('privacy_level'))

        now = now or datetime.now()
        if is_in_past(origin, now):
            logger.info(f"Rejected past availability {origin} for user {owner_id}")
            raise IntervalInPast()

        occurrences = expand(origin, rule, self.hard_cap)

        # One read of the owner's schedule, then decide for every occurrence
        slots = self.repository.list_availability(
            owner_id, start=occurrences[0].date, end=occurrences[-1].date
        )
        invites = self.repository.list_invites(owner_id)
        corpus = blocking_intervals(owner_id, slots, invites)

        conflicting = [occ.date for occ in occurrences if has_conflict(occ, corpus)]
        if conflicting:
            logger.info(f"Availability for user {owner_id} conflicts on {len(conflicting)} date(s)")
            raise ConflictError(_conflict_summary(conflicting))

        signature = encode_rule(rule) if rule.is_recurring else None
        result = CreationResult(created=[], truncated=occurrences.truncated, signature=signature)

        for occurrence in occurrences:
            record = {
                'user_id': owner_id,
                'date': occurrence.date,
                'start_time': to_time(occurrence.start),
                'end_time': to_time(occurrence.end),
                'is_available': data.get('is_available', True),
                'is_blocked': data.get('is_blocked', False),
                'privacy_level': privacy,
                'recurrence_rule': signature,
                'notes': data.get('notes'),
            }
            try:
                result.created.append(self.repository.create_availability(record))
            except ConflictError as e:
                if not rule.is_recurring:
                    raise
                result.failed[occurrence.date.isoformat()] = e.message
                logger.warning(f"Occurrence {occurrence} for user {owner_id} rejected: {e.message}")

        logger.info(
            f"Created {len(result.created)} availability slot(s) for user {owner_id}"
            f"{' (truncated)' if result.truncated else ''}"
        )
        return result

    def update_availability(self, owner_id: str, slot_id: str, data: Dict,
                            scope: str = 'single') -> BulkResult:
        """
        Edit one slot or, with scope='all', every slot sharing its recurrence
        signature. Moving a single occurrence detaches it from its series.
        Past slots stay editable.
        """
        slot = self._owned_slot(owner_id, slot_id, 'edit')
        updates = {key: data[key] for key in EDITABLE_FIELDS if key in data}
        if not updates:
            raise SchedulingError("No editable fields supplied")

        if scope == 'all' and slot.recurrence_rule:
            if 'date' in updates:
                raise SchedulingError("Date cannot be changed for all occurrences at once")
            targets = self.repository.list_availability_group(owner_id, slot.recurrence_rule)
        else:
            targets = [slot]

        # Build and validate every new interval before any write
        planned = []
        for target in targets:
            merged = {
                'date': updates.get('date', target.date),
                'start_time': updates.get('start_time', target.start_time),
                'end_time': updates.get('end_time', target.end_time),
            }
            interval = DateInterval.parse(merged['date'], merged['start_time'], merged['end_time'])
            planned.append((target, interval))

        moved = any(key in updates for key in INTERVAL_FIELDS)
        opening = updates.get('is_available') is True or updates.get('is_blocked') is False
        if moved or opening:
            self._ensure_free(owner_id, planned)

        patch = self._to_patch(updates)
        result = BulkResult()
        for target, interval in planned:
            record_patch = dict(patch)
            if 'date' in record_patch:
                record_patch['date'] = interval.date
            if scope != 'all' and moved and target.recurrence_rule:
                record_patch['recurrence_rule'] = None
            try:
                updated = self.repository.update_availability(target.id, record_patch)
                result.succeeded.append(target.id)
                result.records.append(updated)
            except (SchedulingError, SQLAlchemyError) as e:
                if len(planned) == 1:
                    raise
                result.failed[target.id] = str(e)
                logger.error(f"Error updating availability {target.id}: {str(e)}")

        logger.info(f"Updated {result.count} availability slot(s) for user {owner_id}")
        return result

    def delete_availability(self, owner_id: str, slot_id: str, scope: str = 'single') -> BulkResult:
        """Delete one slot or, with scope='all', every slot in its recurrence group"""
        slot = self._owned_slot(owner_id, slot_id, 'delete')

        if scope == 'all' and slot.recurrence_rule:
            targets = self.repository.list_availability_group(owner_id, slot.recurrence_rule)
        else:
            targets = [slot]

        result = BulkResult()
        for target in targets:
            try:
                self.repository.delete_availability(target.id)
                result.succeeded.append(target.id)
            except (SchedulingError, SQLAlchemyError) as e:
                if len(targets) == 1:
                    raise
                result.failed[target.id] = str(e)
                logger.error(f"Error deleting availability {target.id}: {str(e)}")

        logger.info(
            f"Deleted {result.count} of {len(targets)} availability slot(s) for user {owner_id}"
        )
        return result

    def check_conflict(self, owner_id: str, on, start_time, end_time,
                       exclude_id: Optional[str] = None) -> bool:
        """Would this range collide with the owner's availability or invites?"""
        candidate = DateInterval.parse(on, start_time, end_time)
        slots = self.repository.list_availability(owner_id, start=candidate.date, end=candidate.date)
        invites = self.repository.list_invites(owner_id)
        return has_conflict(candidate, blocking_intervals(owner_id, slots, invites), exclude_id)

    def build_grid(self, owner_id: str, start, days: int = 7,
                   include_others: bool = False) -> ScheduleGrid:
        start = parse_date(start)
        end = start + timedelta(days=days - 1)
        slots = self.repository.list_availability(owner_id, start=start, end=end)
        invites = [
            invite for invite in self.repository.list_invites(owner_id)
            if invite.status in BLOCKING_STATUSES and start <= invite.date <= end
        ]
        others = []
        if include_others:
            others = self.repository.list_public_availability(start, end, exclude_owner_id=owner_id)
        return ScheduleGrid(slots, invites, others, owner_id=owner_id)

    def get_grid(self, owner_id: str, start, days: int = 7, include_others: bool = False,
                 show_weekend: bool = True, show_weekday: bool = True) -> dict:
        """Quarter-hour grid for the display window configured in settings"""
        start = parse_date(start)
        grid = self.build_grid(owner_id, start, days, include_others)
        return grid.to_dict(
            start, days, settings.GRID_START_HOUR, settings.GRID_END_HOUR,
            show_weekend=show_weekend, show_weekday=show_weekday
        )

    def classify_hour(self, owner_id: str, on, hour: int) -> List[QuarterInfo]:
        return self.build_grid(owner_id, on, days=1).quarters(on, hour)

    def _owned_slot(self, owner_id: str, slot_id: str, action: str) -> AvailabilitySlot:
        slot = self.repository.get_availability(slot_id)
        if slot.user_id != owner_id:
            security_logger.warning(
                f"User {owner_id} attempted to {action} availability {slot_id} owned by {slot.user_id}"
            )
            raise Unauthorized(f"You cannot {action} another player's availability")
        return slot

    def _ensure_free(self, owner_id: str, planned: List):
        dates = sorted({interval.date for _, interval in planned})
        slots = self.repository.list_availability(owner_id, start=dates[0], end=dates[-1])
        invites = self.repository.list_invites(owner_id)
        excluded = {target.id for target, _ in planned}
        corpus = [
            item for item in blocking_intervals(owner_id, slots, invites)
            if item.source_id not in excluded
        ]
        conflicting = [interval.date for _, interval in planned if find_conflicts(interval, corpus)]
        if conflicting:
            raise ConflictError(_conflict_summary(conflicting))

    def _to_patch(self, updates: Dict) -> Dict:
        patch = dict(updates)
        for key in ('start_time', 'end_time'):
            if key in patch:
                patch[key] = to_time(parse_time(patch[key]))
        if 'date' in patch:
            patch['date'] = parse_date(patch['date'])
        if 'privacy_level' in patch:
            patch['privacy_level'] = self._privacy(patch['privacy_level'])
        return patch

    @staticmethod
    def _privacy(value: Optional[str]) -> PrivacyLevel:
        if value is None:
            return PrivacyLevel.PUBLIC
        if isinstance(value, PrivacyLevel):
            return value
        try:
            return PrivacyLevel(value)
        except ValueError:
            raise SchedulingError(f"Unknown privacy level {value!r}")
