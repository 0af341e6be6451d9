import logging

import aiohttp

from api.services.storage import StorageService
from lib.error_handler import ValidationError
from lib.text import MAX_QUESTION_LENGTH, utf16_length

logger = logging.getLogger(__name__)

class MessageClient:
    """Chat-side write path: store the question, then ask the relay to page the admin."""

    def __init__(self, storage: StorageService, relay_url: str, timeout: float = 10.0):
        self.storage = storage
        self.relay_url = relay_url
        self.timeout = timeout

    async def add_message(self, name: str, question: str) -> str:
        length = utf16_length(question)
        if length > MAX_QUESTION_LENGTH:
            raise ValidationError(
                f"Question must be {MAX_QUESTION_LENGTH} characters or less. Current: {length} characters.",
                currentLength=length,
                maxLength=MAX_QUESTION_LENGTH
            )

        logger.info("Adding message to store...")
        message_id = await self.storage.create_question(name, question)
        logger.info(f"Message added with ID: {message_id}")

        # The stored row is what the chat shows; a failed notification must not undo it
        await self.notify_relay(name, question)
        return message_id

    async def notify_relay(self, name: str, question: str) -> None:
        try:
            logger.info("Sending SMS notification...")
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.post(
                    self.relay_url,
                    json={'name': name, 'question': question, 'hp_field': ''}
                ) as response:
                    if response.status == 200:
                        result = await response.json()
                        logger.info(f"SMS notification result: {result.get('smsStatus')}")
                    else:
                        logger.warning(f"SMS notification failed: {response.status}")
        except Exception as e:
            logger.warning(f"SMS notification error: {str(e)}")
