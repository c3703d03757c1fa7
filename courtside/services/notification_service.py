from typing import Dict, Optional
from config.config import settings
from courtside.integrations import TwilioClient, SendGridClient
from courtside.models import MatchInvite
from courtside.models.match_invite import InviteStatus
from courtside.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Tells the other party about match invite changes"""

    def __init__(self, repository, twilio: TwilioClient = None, sendgrid: SendGridClient = None):
        self.repository = repository
        self.twilio = twilio or TwilioClient()
        self.sendgrid = sendgrid or SendGridClient()

    def notify_invite_received(self, invite: MatchInvite):
        """New invite, to the receiver"""
        self._notify(invite, invite.receiver_id, "New match invite from {other}")

    def notify_invite_response(self, invite: MatchInvite):
        """Accepted or declined, to the sender"""
        if invite.status is InviteStatus.ACCEPTED:
            headline = "{other} accepted your match invite!"
        elif invite.status is InviteStatus.DECLINED:
            headline = "{other} declined your match invite"
        else:
            return
        self._notify(invite, invite.sender_id, headline)

    def notify_time_proposed(self, invite: MatchInvite):
        """Counter-proposal, to the party who did not propose it"""
        proposer = invite.proposed_by_user_id
        if not proposer:
            return
        proposed = invite.proposed_interval
        self._notify(
            invite, invite.counterparty_of(proposer), "{other} proposed a new time",
            when=self._format_when(proposed) if proposed else None
        )

    def notify_proposal_accepted(self, invite: MatchInvite, proposer_id: str):
        """Proposed time accepted, to the proposer"""
        self._notify(invite, proposer_id, "{other} accepted your proposed time!")

    def notify_invite_cancelled(self, invite: MatchInvite, cancelled_by: str):
        """Cancellation, to the counterparty"""
        self._notify(
            invite, invite.counterparty_of(cancelled_by), "{other} cancelled the match",
            note=invite.cancellation_reason
        )

    def notify_invite_expiring(self, invite: MatchInvite, hours_remaining: int):
        """Unanswered invite about to expire, to the receiver"""
        self._notify(
            invite, invite.receiver_id,
            f"Your match invite from {{other}} expires in {hours_remaining} hours"
        )

    def notify_invite_expired(self, invite: MatchInvite):
        """Expired without a response, to the sender"""
        self._notify(invite, invite.sender_id, "Your match invite to {other} expired")

    def _notify(self, invite: MatchInvite, recipient_id: str, headline: str,
                when: Optional[str] = None, note: Optional[str] = None):
        try:
            other_id = invite.counterparty_of(recipient_id)
            profiles = self.repository.fetch_profiles([recipient_id, other_id])
            recipient = profiles.get(recipient_id)
            other = profiles.get(other_id)

            if not recipient:
                logger.error(f"Missing recipient {recipient_id} for invite {invite.id} notification")
                return

            other_name = other.full_name if other else 'Another player'
            text = headline.format(other=other_name)
            details = self._match_details(invite, other_name, when, note)

            if recipient.wants('sms'):
                self.twilio.send_invite_sms(recipient.phone, text, details)

            if recipient.wants('email'):
                self.sendgrid.send_invite_email(recipient.email, recipient.first_name, text, details)

            logger.info(f"Sent '{text}' notification for invite {invite.id} to user {recipient_id}")

        except Exception as e:
            logger.error(f"Error sending notification for invite {invite.id}: {str(e)}")

    def _match_details(self, invite: MatchInvite, other_name: str,
                       when: Optional[str], note: Optional[str]) -> Dict:
        return {
            'when': when or self._format_when(invite.interval),
            'where': invite.court_location or 'Court to be decided',
            'with': other_name,
            'note': note,
            'link': f"{settings.APP_URL}/dashboard?tab=schedule&invite={invite.id}",
        }

    @staticmethod
    def _format_when(interval) -> str:
        start = interval.start_datetime
        return f"{start.strftime('%A, %B %d at %I:%M %p')} ({interval.duration_minutes} min)"
