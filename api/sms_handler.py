import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from twilio.twiml.messaging_response import MessagingResponse

from api.services.storage import StorageService

logger = logging.getLogger(__name__)


def empty_twiml() -> str:
    return str(MessagingResponse())


class SMSHandler:
    """Turns the admin's SMS replies into chat replies.

    Twilio retries on anything but a 200, so every path returns the same
    empty TwiML acknowledgment and failures are only logged.
    """

    def __init__(self, storage: Optional[StorageService], admin_number: str):
        self.storage = storage
        self.admin_number = admin_number

    async def handle_incoming_message(self, method: str, webhook_data: Mapping[str, Any]) -> str:
        """Handle incoming SMS webhook from Twilio"""
        try:
            if method != 'POST':
                logger.warning(f"Invalid method: {method}")
                return empty_twiml()

            from_number = webhook_data.get('From', '')
            to_number = webhook_data.get('To', '')
            body = webhook_data.get('Body', '')
            message_sid = webhook_data.get('MessageSid')
            logger.info(f"SMS webhook received from {from_number} to {to_number} (sid: {message_sid})")

            if not self.admin_number:
                logger.warning("SMS_RECIPIENT not configured")
                return empty_twiml()

            if from_number != self.admin_number:
                logger.info(f"SMS from {from_number} ignored - not from admin {self.admin_number}")
                return empty_twiml()

            updated = await self.record_reply(body, message_sid)

            logger.info("Structured reply data: " + json.dumps({
                'from': from_number,
                'to': to_number,
                'reply': body,
                'messageSid': message_sid,
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'status': 'processed',
                'storeUpdated': updated
            }))
        except Exception as e:
            logger.error(f"Error processing SMS webhook: {str(e)}", exc_info=True)

        return empty_twiml()

    async def record_reply(self, body: str, message_sid: Optional[str]) -> bool:
        """Attach the reply to the newest pending question, or store it on its own."""
        if self.storage is None:
            logger.warning("Message store not configured - reply not saved")
            return False
        try:
            pending = await self.storage.find_latest_pending()
            if pending is not None:
                logger.info(f"Updating message {pending.id} from {pending.name} with reply")
                await self.storage.attach_reply(pending.id, body, message_sid)
            else:
                logger.info("No pending messages found to reply to")
                await self.storage.create_standalone_reply(body, message_sid)
                logger.info("Created standalone reply message")
            return True
        except Exception as e:
            logger.error(f"Store update failed: {str(e)}")
            return False
