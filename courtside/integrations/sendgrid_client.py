import sendgrid
from sendgrid.helpers.mail import Mail, Email, To, Content
from typing import Optional, Dict
from config.config import settings
from courtside.utils.logger import get_logger

logger = get_logger(__name__)


class SendGridClient:
    """Wrapper for SendGrid email operations"""

    def __init__(self):
        self.api_key = settings.SENDGRID_API_KEY
        self.from_email = settings.SENDGRID_FROM_EMAIL

        if self.api_key:
            self.client = sendgrid.SendGridAPIClient(api_key=self.api_key)
        else:
            self.client = None
            logger.warning("SendGrid API key not configured")

    def send_email(self, to_email: str, subject: str, html_content: str,
                   plain_content: str = None) -> Optional[Dict]:
        """Send email via SendGrid"""
        if not self.client:
            logger.error("SendGrid client not initialized")
            return None

        try:
            message = Mail(
                from_email=Email(self.from_email, "Courtside"),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )

            if plain_content:
                message.plain_text_content = Content("text/plain", plain_content)

            response = self.client.send(message)

            return {
                'status_code': response.status_code,
                'message_id': response.headers.get('X-Message-Id')
            }
        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return None

    def send_invite_email(self, to_email: str, name: str, headline: str,
                          match_details: Dict) -> Optional[Dict]:
        """Send a match invite update email"""
        subject = f"{headline} - {match_details['when']}"
        note = f"<p><em>{match_details['note']}</em></p>" if match_details.get('note') else ""
        html_content = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h2>{headline}</h2>
                <p>Hi {name},</p>
                <div style="background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
                    <p><strong>When:</strong> {match_details['when']}</p>
                    <p><strong>Where:</strong> {match_details['where']}</p>
                    <p><strong>With:</strong> {match_details['with']}</p>
                </div>
                {note}
                <p style="margin: 30px 0;">
                    <a href="{match_details['link']}"
                       style="background-color: #4CAF50; color: white; padding: 14px 28px;
                              text-decoration: none; border-radius: 4px; display: inline-block;">
                        View Invite
                    </a>
                </p>
            </body>
        </html>
        """
        plain_content = (
            f"{headline}\n\n"
            f"When: {match_details['when']}\n"
            f"Where: {match_details['where']}\n"
            f"With: {match_details['with']}\n\n"
            f"View invite: {match_details['link']}"
        )

        return self.send_email(to_email, subject, html_content, plain_content)
