import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from api.client import MessageClient
from api.models import ExchangeRecord
from api.services.feed import FeedState, FeedView
from lib.countdown import Countdown, CountdownTimer
from lib.text import MAX_QUESTION_LENGTH, truncate_utf16, utf16_length

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100
TOOLTIP_HIDE_DELAY = 0.15

NAME_PROMPT = ("Hi! I'm Stuart, your specialist family law property valuer. "
               "What's your name and law firm name?")
TOOLTIP_TEXT = 'Are you a Lawyer or Legal Assistant with a question?'
SEND_ERROR_NOTICE = 'Error sending message. Please try again.'
CONNECTION_ERROR_NOTICE = 'Connection error. Please refresh the page.'


class ChatWidget(FeedView):
    """State behind the chat bubble.

    The first submit captures the visitor's name; every later submit sends a
    question. The conversation shown is every record whose name matches the
    visitor's, ignoring case.
    """

    def __init__(self, client: MessageClient, launch_date: Optional[datetime] = None):
        self.client = client
        self.is_open = False
        self.name = ''
        self.message = ''
        self.has_set_name = False
        self.show_tooltip = False
        self.is_loading = False
        self.notice: Optional[str] = None

        self.messages: List[ExchangeRecord] = []
        self.loading = True
        self.error: Optional[str] = None

        self.countdown = Countdown()
        self._timer = CountdownTimer(launch_date, self._on_tick) if launch_date else None
        self._tooltip_timer: Optional[asyncio.TimerHandle] = None

    # -- lifecycle -----------------------------------------------------

    async def unmount(self) -> None:
        self._cancel_tooltip_timer()
        await super().unmount()

    def apply(self, state: FeedState) -> None:
        self.messages = state.messages
        self.loading = state.loading
        self.error = state.error
        if state.error:
            logger.error(f"Message feed error: {state.error}")

    def _on_tick(self, countdown: Countdown) -> None:
        self.countdown = countdown

    # -- input ---------------------------------------------------------

    def set_name(self, value: str) -> None:
        self.name = truncate_utf16(value, NAME_MAX_LENGTH, suffix='')

    def set_message(self, value: str) -> None:
        self.message = value

    @property
    def message_length(self) -> int:
        return utf16_length(self.message)

    @property
    def remaining_chars(self) -> int:
        return MAX_QUESTION_LENGTH - self.message_length

    @property
    def counter_tone(self) -> str:
        if self.remaining_chars < 10:
            return 'danger'
        if self.remaining_chars < 25:
            return 'warning'
        return 'normal'

    @property
    def is_over_limit(self) -> bool:
        return self.has_set_name and self.message_length > MAX_QUESTION_LENGTH

    @property
    def can_submit(self) -> bool:
        return not self.is_over_limit and not self.is_loading

    @property
    def placeholder(self) -> str:
        if self.has_set_name:
            return f"Brief question (max {MAX_QUESTION_LENGTH} chars)..."
        return 'Enter your name and law firm...'

    async def submit(self) -> Optional[str]:
        """Returns the new message id when a question was sent."""
        self.notice = None
        if not self.has_set_name:
            if self.name.strip():
                self.has_set_name = True
            return None

        if not self.message.strip():
            return None

        if self.is_over_limit:
            self.notice = (f"Question must be {MAX_QUESTION_LENGTH} characters or less. "
                           f"Current: {self.message_length} characters.")
            return None

        self.is_loading = True
        try:
            message_id = await self.client.add_message(self.name, self.message)
            self.message = ''
            return message_id
        except Exception as e:
            logger.error(f"Error sending message: {str(e)}")
            self.notice = SEND_ERROR_NOTICE
            return None
        finally:
            self.is_loading = False

    # -- view ----------------------------------------------------------

    @property
    def conversation(self) -> List[ExchangeRecord]:
        key = self.name.lower()
        return [msg for msg in self.messages if msg.name.lower() == key]

    @property
    def greeting(self) -> str:
        if not self.has_set_name:
            return NAME_PROMPT
        return f"Hi {self.name}! How can I help with your family law property matter today?"

    @property
    def connection_notice(self) -> Optional[str]:
        if self.loading:
            return 'Connecting...'
        if self.error:
            return CONNECTION_ERROR_NOTICE
        return None

    @property
    def countdown_badge(self) -> Optional[str]:
        if self.countdown.is_live:
            return None
        return self.countdown.badge()

    def toggle(self) -> None:
        self.is_open = not self.is_open
        self.show_tooltip = False

    # -- tooltip -------------------------------------------------------

    def mouse_enter(self) -> None:
        if not self.is_open:
            self._cancel_tooltip_timer()
            self.show_tooltip = True

    def mouse_leave(self) -> None:
        self._cancel_tooltip_timer()
        self._tooltip_timer = asyncio.get_running_loop().call_later(TOOLTIP_HIDE_DELAY, self._hide_tooltip)

    def tooltip_mouse_enter(self) -> None:
        self._cancel_tooltip_timer()

    def tooltip_mouse_leave(self) -> None:
        self.show_tooltip = False

    def _hide_tooltip(self) -> None:
        self._tooltip_timer = None
        self.show_tooltip = False

    def _cancel_tooltip_timer(self) -> None:
        if self._tooltip_timer is not None:
            self._tooltip_timer.cancel()
            self._tooltip_timer = None
