from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from typing import Optional, Dict
from config.config import settings
from courtside.utils.logger import get_logger

logger = get_logger(__name__)


class TwilioClient:
    """Wrapper for Twilio SMS operations"""

    def __init__(self):
        self.account_sid = settings.TWILIO_ACCOUNT_SID
        self.auth_token = settings.TWILIO_AUTH_TOKEN
        self.phone_number = settings.TWILIO_PHONE_NUMBER

        if self.account_sid and self.auth_token:
            self.client = Client(self.account_sid, self.auth_token)
        else:
            self.client = None
            logger.warning("Twilio credentials not configured")

    def send_sms(self, to_number: str, message: str) -> Optional[Dict]:
        """Send SMS message"""
        if not self.client:
            logger.error("Twilio client not initialized")
            return None
        if not to_number:
            logger.debug("No phone number on file, SMS skipped")
            return None

        try:
            sent = self.client.messages.create(
                body=message,
                from_=self.phone_number,
                to=to_number
            )
            return {
                'sid': sent.sid,
                'status': sent.status,
                'to': sent.to
            }
        except TwilioRestException as e:
            logger.error(f"Error sending SMS to {to_number}: {str(e)}")
            return None

    def send_invite_sms(self, to_number: str, headline: str, match_details: Dict) -> Optional[Dict]:
        """Send a match invite update"""
        message = (
            f"Courtside: {headline}\n"
            f"When: {match_details['when']}\n"
            f"Where: {match_details['where']}\n"
            f"Details: {match_details['link']}"
        )
        return self.send_sms(to_number, message)
