"""
Conflict detection for new or edited time ranges.

Pure predicates over the union of a user's open availability and every
pending/accepted invite that involves them. Nothing here touches storage.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from courtside.exceptions import ConflictError
from courtside.models.match_invite import BLOCKING_STATUSES, InviteStatus
from courtside.utils.intervals import DateInterval, overlaps

AVAILABILITY = 'availability'
INVITE = 'invite'


@dataclass(frozen=True)
class BlockingInterval:
    """One interval that a candidate may not overlap"""

    source_id: Optional[str]
    kind: str
    interval: DateInterval


def _unpack(item):
    if isinstance(item, BlockingInterval):
        return item.source_id, item.interval
    if isinstance(item, DateInterval):
        return None, item
    return getattr(item, 'id', None), item.interval


def find_conflicts(candidate: DateInterval, existing: Iterable, exclude_id: Optional[str] = None) -> List:
    """Every element of ``existing`` that overlaps the candidate"""
    found = []
    for item in existing:
        source_id, interval = _unpack(item)
        if exclude_id is not None and source_id == exclude_id:
            continue
        if overlaps(candidate, interval):
            found.append(item)
    return found


def has_conflict(candidate: DateInterval, existing: Iterable, exclude_id: Optional[str] = None) -> bool:
    """True iff any element other than ``exclude_id`` overlaps the candidate"""
    return bool(find_conflicts(candidate, existing, exclude_id))


def ensure_no_conflict(candidate: DateInterval, existing: Iterable, exclude_id: Optional[str] = None):
    """Raise ConflictError naming the first colliding interval"""
    conflicts = find_conflicts(candidate, existing, exclude_id)
    if conflicts:
        first = conflicts[0]
        kind = first.kind if isinstance(first, BlockingInterval) else 'interval'
        raise ConflictError(
            f"{candidate} overlaps an existing {kind} ({_unpack(first)[1]})"
        )


def invite_blocking_intervals(user_ids: Iterable[str], invites: Iterable,
                              exclude_id: Optional[str] = None) -> List[BlockingInterval]:
    """Pending/accepted invites in which any of ``user_ids`` takes part"""
    users = set(user_ids)
    blocking = []
    for invite in invites:
        if invite.status not in BLOCKING_STATUSES or invite.id == exclude_id:
            continue
        if invite.sender_id in users or invite.receiver_id in users:
            blocking.append(BlockingInterval(invite.id, INVITE, invite.interval))
    return blocking


def blocking_intervals(owner_id: str, slots: Iterable, invites: Iterable) -> List[BlockingInterval]:
    """
    The corpus a new availability slot is checked against: the owner's own open
    slots plus every pending or accepted invite touching the owner.
    """
    blocking = [
        BlockingInterval(slot.id, AVAILABILITY, slot.interval)
        for slot in slots
        if slot.user_id == owner_id and slot.is_open
    ]
    blocking.extend(invite_blocking_intervals([owner_id], invites))
    return blocking


def is_slot_booked(candidate: DateInterval, invites: Iterable, user_id: Optional[str] = None) -> bool:
    """True when an accepted invite (for ``user_id`` if given) overlaps the candidate"""
    for invite in invites:
        if invite.status is not InviteStatus.ACCEPTED:
            continue
        if user_id and user_id not in (invite.sender_id, invite.receiver_id):
            continue
        if overlaps(candidate, invite.interval):
            return True
    return False
