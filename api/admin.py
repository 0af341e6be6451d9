import logging
from datetime import datetime
from typing import Dict, List, Optional

from api.models import ExchangeRecord
from api.services.feed import FeedState, FeedView
from api.services.storage import StorageService
from lib.countdown import Countdown, CountdownTimer

logger = logging.getLogger(__name__)

class AdminPanel(FeedView):
    """Admin dashboard: every exchange, with a reply box on each unanswered one.

    Replies go straight to the store; no SMS is involved.
    """

    def __init__(self, storage: StorageService, launch_date: Optional[datetime] = None):
        self.storage = storage
        self.messages: List[ExchangeRecord] = []
        self.replies: Dict[str, str] = {}
        self.countdown = Countdown()
        self._timer = CountdownTimer(launch_date, self._on_tick) if launch_date else None

    def apply(self, state: FeedState) -> None:
        self.messages = state.messages

    def _on_tick(self, countdown: Countdown) -> None:
        self.countdown = countdown

    @property
    def unread_messages(self) -> List[ExchangeRecord]:
        return [msg for msg in self.messages if msg.is_pending]

    @property
    def summary(self) -> str:
        count = len(self.unread_messages)
        return f"{count} unread message{'' if count == 1 else 's'}"

    @staticmethod
    def status_label(message: ExchangeRecord) -> str:
        return 'Replied' if message.read else 'Pending'

    def set_draft(self, message_id: str, text: str) -> None:
        self.replies[message_id] = text

    async def handle_reply(self, message_id: str, text: Optional[str] = None) -> bool:
        """Save the drafted reply for ``message_id``. Blank drafts are ignored."""
        reply = text if text is not None else self.replies.get(message_id, '')
        if not reply or not reply.strip():
            return False

        try:
            await self.storage.reply_to_message(message_id, reply)
        except Exception as e:
            logger.error(f"Error sending reply: {str(e)}")
            return False

        self.replies[message_id] = ''
        return True
