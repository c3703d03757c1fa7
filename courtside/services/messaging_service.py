from typing import Optional
from courtside.models import MatchInvite, Message
from courtside.utils.intervals import format_time
from courtside.utils.logger import get_logger

logger = get_logger(__name__)


class MessagingService:
    """Opens the conversation between two players once a match is agreed"""

    def __init__(self, repository):
        self.repository = repository

    def open_match_conversation(self, invite: MatchInvite, opened_by: str) -> Optional[Message]:
        """
        Post the first "Match Confirmed" message from the accepting player.
        Failures are logged and never undo the acceptance.
        """
        try:
            interval = invite.interval
            message = self.repository.create_message({
                'sender_id': opened_by,
                'receiver_id': invite.counterparty_of(opened_by),
                'invite_id': invite.id,
                'subject': 'Match Confirmed',
                'content': (
                    f"Great! Our match for {interval.date.isoformat()} at "
                    f"{format_time(interval.start, with_seconds=False)} is confirmed. "
                    f"Looking forward to playing with you!"
                ),
            })
            logger.info(f"Opened conversation for invite {invite.id}")
            return message

        except Exception as e:
            logger.error(f"Error creating conversation for invite {invite.id}: {str(e)}")
            return None
