"""
Match invite negotiation rules.

Each function validates one transition against the invite's current state and
returns the field patch to persist. Nothing is mutated here: a rejected
transition raises before any patch exists, so callers never write partially.

    PENDING --respond(accept)--------> ACCEPTED --cancel--> CANCELLED
    PENDING --respond(decline)-------> DECLINED
    PENDING --propose_new_time-------> PENDING
    PENDING --accept_proposed_time---> ACCEPTED
    PENDING --cancel-----------------> CANCELLED
    PENDING --expire (now > expiry)--> EXPIRED
"""

from datetime import datetime
from typing import Dict, Optional

from courtside.exceptions import InvalidTransition, SchedulingError, Unauthorized
from courtside.models.match_invite import TERMINAL_STATUSES, InviteStatus
from courtside.utils.intervals import DateInterval, to_time

ALLOWED_TRANSITIONS = {
    InviteStatus.PENDING: frozenset({
        InviteStatus.PENDING, InviteStatus.ACCEPTED, InviteStatus.DECLINED,
        InviteStatus.CANCELLED, InviteStatus.EXPIRED,
    }),
    InviteStatus.ACCEPTED: frozenset({InviteStatus.CANCELLED}),
    **{status: frozenset() for status in TERMINAL_STATUSES},
}

ACCEPT = 'accept'
DECLINE = 'decline'

_CLEARED_PROPOSAL = {
    'proposed_date': None,
    'proposed_start_time': None,
    'proposed_end_time': None,
    'proposed_by_user_id': None,
    'proposed_at': None,
}


def can_transition(current: InviteStatus, target: InviteStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _require_transition(invite, target: InviteStatus, action: str):
    if not can_transition(invite.status, target):
        raise InvalidTransition(
            f"Cannot {action} an invite that is {invite.status.value}"
        )


def _require_party(invite, actor_id: str, action: str):
    if actor_id not in (invite.sender_id, invite.receiver_id):
        raise Unauthorized(f"Only the sender or receiver can {action} this invite")


def _interval_fields(interval: DateInterval, prefix: str = '') -> Dict:
    return {
        f'{prefix}date': interval.date,
        f'{prefix}start_time': to_time(interval.start),
        f'{prefix}end_time': to_time(interval.end),
    }


def respond(invite, actor_id: str, decision: str, now: datetime) -> Dict:
    """Receiver accepts or declines the invite as sent"""
    if decision not in (ACCEPT, DECLINE):
        raise SchedulingError(f"Unknown response {decision!r}; expected 'accept' or 'decline'")
    if actor_id != invite.receiver_id:
        raise Unauthorized("Only the receiver can respond to this invite")

    target = InviteStatus.ACCEPTED if decision == ACCEPT else InviteStatus.DECLINED
    _require_transition(invite, target, decision)

    patch = {'status': target, 'response_at': now}
    if target is InviteStatus.ACCEPTED:
        patch.update(_CLEARED_PROPOSAL)
    return patch


def propose_new_time(invite, actor_id: str, interval: DateInterval, now: datetime) -> Dict:
    """Either party attaches a counter-proposal; the agreed time is unchanged"""
    _require_party(invite, actor_id, 'propose a new time for')
    _require_transition(invite, InviteStatus.PENDING, 'propose a new time for')

    patch = _interval_fields(interval, prefix='proposed_')
    patch.update({
        'proposed_by_user_id': actor_id,
        'proposed_at': now,
        'status': InviteStatus.PENDING,
    })
    return patch


def accept_proposed_time(invite, actor_id: str, now: datetime) -> Dict:
    """The party who did not propose promotes the proposal to the invite's time"""
    _require_party(invite, actor_id, 'accept a proposed time for')
    _require_transition(invite, InviteStatus.ACCEPTED, 'accept a proposed time for')

    proposed = invite.proposed_interval
    if proposed is None:
        raise InvalidTransition("No proposed time to accept")
    if actor_id == invite.proposed_by_user_id:
        raise Unauthorized("The proposer cannot accept their own proposed time")

    patch = _interval_fields(proposed)
    patch.update(_CLEARED_PROPOSAL)
    patch.update({'status': InviteStatus.ACCEPTED, 'response_at': now})
    return patch


def cancel(invite, actor_id: str, now: datetime, reason: Optional[str] = None) -> Dict:
    """Either party calls off a pending or accepted invite"""
    _require_party(invite, actor_id, 'cancel')
    _require_transition(invite, InviteStatus.CANCELLED, 'cancel')

    return {
        'status': InviteStatus.CANCELLED,
        'cancelled_at': now,
        'cancelled_by_user_id': actor_id,
        'cancellation_reason': reason or None,
    }


def expire(invite, now: datetime) -> Dict:
    """System sweep: a pending invite past its expiry"""
    _require_transition(invite, InviteStatus.EXPIRED, 'expire')
    if not now > invite.expires_at:
        raise InvalidTransition("Invite has not reached its expiry time")
    return {'status': InviteStatus.EXPIRED}


def is_expired(invite, now: datetime) -> bool:
    return invite.status is InviteStatus.PENDING and now > invite.expires_at
