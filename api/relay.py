import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from api.services.sms import SMSService, SmsOutcome
from api.services.storage import StorageService
from lib.config import Settings
from lib.error_handler import ErrorHandler, ValidationError
from lib.text import MAX_QUESTION_LENGTH, utf16_length

logger = logging.getLogger(__name__)


def synthetic_message_id() -> str:
    """Local stand-in id used when the database write did not happen."""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"msg_{int(time.time() * 1000)}_{suffix}"


@dataclass
class StoreOutcome:
    status: str
    message_id: str


@dataclass
class RelayResult:
    store: StoreOutcome
    sms: SmsOutcome
    question_length: int
    honeypot: bool = False
    debug: Dict[str, Any] = field(default_factory=dict)

    def to_response(self) -> Dict[str, Any]:
        return {
            'success': True,
            'messageId': self.store.message_id,
            'message': 'Question received and saved to database',
            'firestoreStatus': self.store.status,
            'smsStatus': self.sms.status,
            'questionLength': self.question_length,
            'maxLength': MAX_QUESTION_LENGTH,
            'honeypot': self.honeypot,
            'debug': {**self.debug, 'smsDetails': self.sms.details}
        }


class MessageRelay:
    """Takes a chat submission, stores it and pages the admin by SMS.

    Both side effects are best-effort and reported separately. The chat client
    has already written the question itself, so this endpoint is a notification
    side channel rather than the source of truth.
    """

    def __init__(self, storage: Optional[StorageService], sms_service: SMSService, settings: Settings):
        self.storage = storage
        self.sms = sms_service
        self.settings = settings

    def _debug(self) -> Dict[str, Any]:
        return {
            'storeConfigured': self.settings.store_configured,
            'twilioConfigured': self.settings.twilio_configured
        }

    @staticmethod
    def validate(payload: Dict[str, Any]) -> None:
        name = payload.get('name')
        question = payload.get('question')
        if not isinstance(name, str) or not isinstance(question, str) or not name or not question:
            raise ValidationError('Name and question are required')

        length = utf16_length(question)
        if length > MAX_QUESTION_LENGTH:
            raise ValidationError(
                f"Question too long. Maximum {MAX_QUESTION_LENGTH} characters allowed.",
                currentLength=length,
                maxLength=MAX_QUESTION_LENGTH
            )

    async def handle_submission(self, payload: Dict[str, Any]) -> RelayResult:
        if not isinstance(payload, dict):
            raise ValidationError('Name and question are required')

        hp_field = payload.get('hp_field')
        if hp_field and str(hp_field).strip():
            logger.info(f"Honeypot triggered - request ignored: name={payload.get('name')!r}")
            question = payload.get('question') or ''
            return RelayResult(
                store=StoreOutcome('saved', synthetic_message_id()),
                sms=SmsOutcome('sent'),
                question_length=utf16_length(question) if isinstance(question, str) else 0,
                honeypot=True,
                debug=self._debug()
            )

        self.validate(payload)
        name = payload['name']
        question = payload['question']

        store = await self._persist(name, question)
        sms = await self.sms.notify_new_question(name, question, store.message_id)

        return RelayResult(
            store=store,
            sms=sms,
            question_length=utf16_length(question),
            debug=self._debug()
        )

    async def _persist(self, name: str, question: str) -> StoreOutcome:
        if self.storage is None:
            logger.warning("Message store not configured - using local message id")
            return StoreOutcome('not_configured', synthetic_message_id())
        try:
            message_id = await self.storage.create_question(name, question)
            return StoreOutcome('saved', message_id)
        except Exception as e:
            status = ErrorHandler.handle_storage_error(e)
            return StoreOutcome(status, synthetic_message_id())
