from datetime import datetime, timedelta
from typing import Dict, List, Optional

from config.config import settings
from courtside.exceptions import (
    InvalidTransition, IntervalInPast, NotFound, SchedulingError, Unauthorized
)
from courtside.models import MatchInvite
from courtside.models.match_invite import InviteStatus
from courtside.services.messaging_service import MessagingService
from courtside.services.notification_service import NotificationService
from courtside.utils import negotiation
from courtside.utils.conflicts import ensure_no_conflict, invite_blocking_intervals, is_slot_booked
from courtside.utils.intervals import DateInterval, is_in_past, to_time
from courtside.utils.logger import get_logger, get_security_logger

logger = get_logger(__name__)
security_logger = get_security_logger()


class InviteService:
    """Service for the match invite lifecycle"""

    def __init__(self, repository, notification_service: NotificationService = None,
                 messaging_service: MessagingService = None, expiry_hours: int = None):
        self.repository = repository
        self.notification_service = notification_service or NotificationService(repository)
        self.messaging_service = messaging_service or MessagingService(repository)
        self.expiry_hours = expiry_hours or settings.INVITE_EXPIRY_HOURS

    def send_invite(self, sender_id: str, data: Dict, now: datetime = None) -> MatchInvite:
        """Create a pending invite after checking the receiver's schedule"""
        receiver_id = data.get('receiver_id')
        if not receiver_id:
            raise SchedulingError("receiver_id is required")
        if receiver_id == sender_id:
            raise SchedulingError("You cannot invite yourself to a match")

        interval = DateInterval.parse(data.get('date'), data.get('start_time'), data.get('end_time'))
        now = now or datetime.now()
        if is_in_past(interval, now):
            logger.info(f"Rejected past invite {interval} from user {sender_id}")
            raise IntervalInPast()
        expires_at = self._expiry(data.get('expires_at'), now)

        if receiver_id not in self.repository.fetch_profiles([receiver_id]):
            raise NotFound(f"Player {receiver_id} not found")

        availability_id = data.get('availability_id')
        if availability_id:
            slot = self.repository.get_availability(availability_id)
            if slot.user_id != receiver_id:
                raise SchedulingError("Availability does not belong to the invited player")

        receiver_invites = self.repository.list_invites(receiver_id)
        ensure_no_conflict(interval, invite_blocking_intervals([receiver_id], receiver_invites))

        invite = self.repository.create_invite({
            'sender_id': sender_id,
            'receiver_id': receiver_id,
            'availability_id': availability_id,
            'date': interval.date,
            'start_time': to_time(interval.start),
            'end_time': to_time(interval.end),
            'status': InviteStatus.PENDING,
            'expires_at': expires_at,
            'court_location': data.get('court_location'),
            'message': data.get('message'),
        })

        logger.info(f"Invite {invite.id} sent from {sender_id} to {receiver_id} for {interval}")
        self.notification_service.notify_invite_received(invite)
        return invite

    def respond(self, invite_id: str, actor_id: str, decision: str, now: datetime = None) -> MatchInvite:
        """Receiver accepts or declines"""
        now = now or datetime.now()
        invite = self.repository.get_invite(invite_id)
        patch = self._guarded(negotiation.respond, invite, actor_id, decision, now)

        updated = self._apply(invite, patch)
        self.notification_service.notify_invite_response(updated)
        if updated.status is InviteStatus.ACCEPTED:
            self.messaging_service.open_match_conversation(updated, opened_by=actor_id)
        return updated

    def propose_new_time(self, invite_id: str, actor_id: str, data: Dict,
                         now: datetime = None) -> MatchInvite:
        """Attach a counter-proposal; the invite stays pending"""
        now = now or datetime.now()
        interval = DateInterval.parse(data.get('date'), data.get('start_time'), data.get('end_time'))
        invite = self.repository.get_invite(invite_id)
        patch = self._guarded(negotiation.propose_new_time, invite, actor_id, interval, now)

        if is_in_past(interval, now):
            raise IntervalInPast("Proposed time is in the past")

        updated = self._apply(invite, patch)
        self.notification_service.notify_time_proposed(updated)
        return updated

    def accept_proposed_time(self, invite_id: str, actor_id: str, now: datetime = None) -> MatchInvite:
        """
        The non-proposing party promotes the proposal to the agreed time. Both
        players' other pending or accepted invites are checked first.
        """
        now = now or datetime.now()
        invite = self.repository.get_invite(invite_id)
        proposer_id = invite.proposed_by_user_id
        patch = self._guarded(negotiation.accept_proposed_time, invite, actor_id, now)

        participants = [invite.sender_id, invite.receiver_id]
        others = []
        for user_id in participants:
            others.extend(self.repository.list_invites(user_id))
        ensure_no_conflict(
            invite.proposed_interval,
            invite_blocking_intervals(participants, others, exclude_id=invite.id)
        )

        updated = self._apply(invite, patch)
        self.notification_service.notify_proposal_accepted(updated, proposer_id)
        self.messaging_service.open_match_conversation(updated, opened_by=actor_id)
        return updated

    def cancel(self, invite_id: str, actor_id: str, reason: Optional[str] = None,
               now: datetime = None) -> MatchInvite:
        now = now or datetime.now()
        invite = self.repository.get_invite(invite_id)
        patch = self._guarded(negotiation.cancel, invite, actor_id, now, reason)

        updated = self._apply(invite, patch)
        self.notification_service.notify_invite_cancelled(updated, actor_id)
        return updated

    def expire(self, invite_id: str, now: datetime = None) -> MatchInvite:
        """System transition for one pending invite past its expiry"""
        now = now or datetime.now()
        invite = self.repository.get_invite(invite_id)
        patch = negotiation.expire(invite, now)

        updated = self._apply(invite, patch)
        self.notification_service.notify_invite_expired(updated)
        return updated

    def expire_stale_invites(self, now: datetime = None) -> int:
        """Sweep every pending invite whose expiry has passed"""
        now = now or datetime.now()
        expired = 0
        try:
            stale = self.repository.list_expirable_invites(now)
            logger.info(f"Found {len(stale)} invite(s) past expiry")

            for invite in stale:
                try:
                    updated = self._apply(invite, negotiation.expire(invite, now))
                    self.notification_service.notify_invite_expired(updated)
                    expired += 1
                except InvalidTransition as e:
                    # Answered between the read and the write
                    logger.info(f"Skipped expiring invite {invite.id}: {e.message}")

        except Exception as e:
            logger.error(f"Error expiring stale invites: {str(e)}")

        return expired

    def send_expiry_reminders(self, now: datetime = None) -> int:
        """Remind receivers of pending invites that expire within the reminder window"""
        now = now or datetime.now()
        window = timedelta(hours=settings.INVITE_REMINDER_WINDOW_HOURS)
        sent = 0
        try:
            expiring = self.repository.list_expiring_invites(now, now + window)
            for invite in expiring:
                hours_remaining = max(1, int((invite.expires_at - now).total_seconds() // 3600))
                self.notification_service.notify_invite_expiring(invite, hours_remaining)
                sent += 1
            logger.info(f"Sent {sent} expiry reminder(s)")

        except Exception as e:
            logger.error(f"Error sending expiry reminders: {str(e)}")

        return sent

    def list_invites(self, user_id: str) -> List[Dict]:
        return self.repository.list_invites_with_profiles(user_id)

    def get_invite(self, invite_id: str, user_id: str) -> MatchInvite:
        invite = self.repository.get_invite(invite_id)
        if not invite.involves(user_id):
            security_logger.warning(f"User {user_id} attempted to read invite {invite_id}")
            raise Unauthorized("You are not part of this invite")
        return invite

    def is_slot_booked(self, user_id: str, on, start_time, end_time) -> bool:
        candidate = DateInterval.parse(on, start_time, end_time)
        return is_slot_booked(candidate, self.repository.list_invites(user_id), user_id=user_id)

    def _guarded(self, transition, invite: MatchInvite, actor_id: str, *args) -> Dict:
        try:
            return transition(invite, actor_id, *args)
        except Unauthorized as e:
            security_logger.warning(
                f"User {actor_id} denied {transition.__name__} on invite {invite.id}: {e.message}"
            )
            raise
        except InvalidTransition as e:
            logger.info(f"Rejected {transition.__name__} on invite {invite.id}: {e.message}")
            raise

    def _expiry(self, value, now: datetime) -> datetime:
        """Client-supplied expiry as a naive local datetime, or the default window"""
        if value in (None, ''):
            return now + timedelta(hours=self.expiry_hours)

        if not isinstance(value, datetime):
            try:
                value = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
            except ValueError:
                raise SchedulingError(f"Invalid expires_at: {value!r}")
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)

        if value <= now:
            raise SchedulingError("expires_at must be in the future")
        return value

    def _apply(self, invite: MatchInvite, patch: Dict) -> MatchInvite:
        fields = dict(patch)
        status = fields.pop('status')
        updated = self.repository.update_invite_status(invite.id, status, **fields)
        logger.info(f"Invite {invite.id} is now {updated.status.value}")
        return updated
