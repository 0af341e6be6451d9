import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from lib.error_handler import ErrorHandler
from lib.text import truncate_utf16

logger = logging.getLogger(__name__)

SMS_QUESTION_LIMIT = 120

SMS_TEMPLATE = """🏛️ New Ask Stuart Question

From: {name}
Question: {question}

Message ID: {message_id}
Time: {time}

📱 Reply via admin panel for instant chat response"""


def format_local_time(moment: datetime) -> str:
    """en-AU style, e.g. ``14/07/2025, 9:05:03 am``."""
    meridiem = 'am' if moment.hour < 12 else 'pm'
    return f"{moment:%d/%m/%Y}, {moment.hour % 12 or 12}:{moment:%M:%S} {meridiem}"


@dataclass
class SmsOutcome:
    status: str
    details: Dict[str, Any] = field(default_factory=dict)


class SMSService:
    def __init__(self, twilio_client, phone_number: str, recipient: str, timezone: str = 'Australia/Sydney'):
        self.client = twilio_client
        self.phone_number = phone_number
        self.recipient = recipient
        self.timezone = ZoneInfo(timezone)
        logger.info(f"SMS service initialized with phone number: {phone_number or 'not_set'}")

    @property
    def configured(self) -> bool:
        return self.client is not None

    def format_notification(self, name: str, question: str, message_id: str,
                            now: Optional[datetime] = None) -> str:
        now = (now or datetime.now(self.timezone)).astimezone(self.timezone)
        return SMS_TEMPLATE.format(
            name=name,
            question=truncate_utf16(question, SMS_QUESTION_LIMIT),
            message_id=message_id,
            time=format_local_time(now)
        )

    async def notify_new_question(self, name: str, question: str, message_id: str) -> SmsOutcome:
        """Tell the admin about a new question. Never raises; the outcome says what happened."""
        if not self.configured:
            logger.warning("Twilio credentials not configured")
            return SmsOutcome('not_configured', {'error': 'Twilio credentials not configured'})

        if not self.phone_number or not self.recipient:
            logger.warning("Twilio phone numbers not configured")
            return SmsOutcome('numbers_not_configured', {
                'error': 'Phone numbers not configured',
                'fromNumber': self.phone_number or 'not_set',
                'toNumber': self.recipient or 'not_set'
            })

        try:
            logger.info(f"Attempting to send SMS from {self.phone_number} to {self.recipient}")
            body = self.format_notification(name, question, message_id)
            # Run Twilio API call in an executor to prevent blocking
            loop = asyncio.get_running_loop()
            sid = await loop.run_in_executor(
                None,
                lambda: self.client.send_message(self.phone_number, self.recipient, body)
            )
            logger.info(f"SMS sent successfully: {sid}")
            return SmsOutcome('sent', {'messageSid': sid, 'from': self.phone_number, 'to': self.recipient})
        except Exception as e:
            return SmsOutcome('failed', ErrorHandler.handle_sms_error(e))
