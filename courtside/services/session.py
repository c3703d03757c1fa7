"""
Live schedule view for one signed-in player.

A ScheduleSession loads the player's availability and invites once, then keeps
them current from the repository's change feed, applying events in arrival
order. Local creates are shown immediately through an optimistic overlay that
is reconciled with the stored records on success and rolled back on failure.
"""

import threading
import uuid
from datetime import date, timedelta
from typing import Dict, List, Optional

from courtside.models import AvailabilitySlot, MatchInvite
from courtside.models.availability import PrivacyLevel
from courtside.realtime import ChangeEvent, ChangeType, Subscription
from courtside.services.availability_service import AvailabilityService, CreationResult
from courtside.utils.grid import ScheduleGrid
from courtside.utils.intervals import DateInterval, to_time
from courtside.utils.logger import get_logger
from courtside.utils.optimistic import apply_insert, reconcile, rollback

logger = get_logger(__name__)

AVAILABILITY_TABLE = AvailabilitySlot.__tablename__
INVITES_TABLE = MatchInvite.__tablename__


class ScheduleSession:

    def __init__(self, repository, user_id: str, availability_service: AvailabilityService = None):
        self.repository = repository
        self.user_id = user_id
        self.availability_service = availability_service or AvailabilityService(repository)
        self._lock = threading.Lock()
        self._slots: Dict[str, AvailabilitySlot] = {}
        self._optimistic: Dict[str, AvailabilitySlot] = {}
        self._invites: Dict[str, MatchInvite] = {}
        self._subscription: Optional[Subscription] = None
        self.events_applied = 0

    def open(self) -> 'ScheduleSession':
        # Subscribe before loading so nothing written in between is missed
        self._subscription = self.repository.subscribe(self.user_id, self._on_change)
        slots = self.repository.list_availability(self.user_id)
        invites = self.repository.list_invites(self.user_id)
        with self._lock:
            self._slots = {slot.id: slot for slot in slots}
            self._invites = {invite.id: invite for invite in invites}
        logger.info(f"Opened schedule session for user {self.user_id}")
        return self

    def close(self):
        """Stop receiving changes; safe to call more than once"""
        if self._subscription is not None:
            self._subscription.unsubscribe()
        logger.debug(f"Closed schedule session for user {self.user_id}")

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()

    @property
    def slots(self) -> List[AvailabilitySlot]:
        with self._lock:
            merged = dict(self._slots)
            merged.update(self._optimistic)
        return sorted(merged.values(), key=lambda slot: (slot.date, slot.start_time))

    @property
    def invites(self) -> List[MatchInvite]:
        with self._lock:
            return list(self._invites.values())

    def _on_change(self, event: ChangeEvent):
        if event.table == AVAILABILITY_TABLE:
            target = self._slots
        elif event.table == INVITES_TABLE:
            target = self._invites
        else:
            return

        with self._lock:
            if event.change_type is ChangeType.DELETE:
                target.pop(event.record_id, None)
            else:
                target[event.record_id] = event.new
            self.events_applied += 1

    def create_availability(self, data: Dict, now=None) -> CreationResult:
        """Show the new slot at once, then confirm or roll back"""
        origin = DateInterval.parse(data.get('date'), data.get('start_time'), data.get('end_time'))
        placeholder_id = f"optimistic-{uuid.uuid4()}"
        placeholder = AvailabilitySlot(
            id=placeholder_id,
            user_id=self.user_id,
            date=origin.date,
            start_time=to_time(origin.start),
            end_time=to_time(origin.end),
            is_available=data.get('is_available', True),
            is_blocked=data.get('is_blocked', False),
            privacy_level=PrivacyLevel(data.get('privacy_level') or PrivacyLevel.PUBLIC.value),
            notes=data.get('notes'),
        )

        with self._lock:
            transition = apply_insert(self._optimistic, placeholder_id, placeholder)
            self._optimistic = dict(transition.after)

        try:
            result = self.availability_service.create_availability(self.user_id, data, now=now)
        except Exception:
            with self._lock:
                self._optimistic = rollback(transition)
            logger.info(f"Rolled back optimistic availability for user {self.user_id}")
            raise

        with self._lock:
            self._optimistic.pop(placeholder_id, None)
            for slot in result.created:
                self._slots = reconcile(self._slots, transition, confirmed=slot, confirmed_id=slot.id)
        return result

    def grid(self, include_others: bool = False, start: date = None, days: int = 7) -> ScheduleGrid:
        """Grid over the session's current view; recomputed on every call"""
        others = []
        if include_others and start is not None:
            end = start + timedelta(days=days - 1)
            others = self.repository.list_public_availability(start, end, exclude_owner_id=self.user_id)
        return ScheduleGrid(self.slots, self.invites, others, owner_id=self.user_id)
