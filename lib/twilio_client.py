from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from typing import Optional
import logging
from lib.config import Settings
from lib.error_handler import AppError

logger = logging.getLogger(__name__)

class TwilioClient:
    def __init__(self, account_sid: str, auth_token: str, client: Optional[Client] = None):
        self.client = client or Client(account_sid, auth_token)

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional['TwilioClient']:
        """Build a client, or return None when credentials are missing."""
        if not settings.twilio_configured:
            logger.warning("Twilio credentials not configured - SMS notifications disabled")
            return None
        return cls(settings.twilio_account_sid, settings.twilio_auth_token)

    def send_message(self, from_number: str, to_number: str, message: str) -> str:
        """Send an SMS message and return the message SID."""
        try:
            message = self.client.messages.create(
                body=message,
                from_=from_number,
                to=to_number
            )
            logger.info(f"Message sent successfully to {to_number}")
            return message.sid
        except TwilioRestException as e:
            logger.error(f"Twilio error sending message: {str(e)}")
            if e.code == 21608:  # Unverified number
                raise AppError("This phone number is not verified with our test account.", code=e.code)
            elif e.code == 21211:  # Invalid phone number
                raise AppError("Invalid phone number format.", code=e.code)
            else:
                raise AppError(f"Failed to send message: {e.msg}", code=e.code)
