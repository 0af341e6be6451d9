import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

from api.models import ExchangeRecord
from api.services.storage import StorageService
from lib.database import is_permission_error
from lib.error_handler import ErrorHandler

logger = logging.getLogger(__name__)

PERMISSION_NOTICE = 'Connecting to database... Please wait a moment and refresh the page.'


@dataclass
class FeedState:
    messages: List[ExchangeRecord] = field(default_factory=list)
    loading: bool = True
    error: Optional[str] = None


class MessageFeed:
    """Live view of the messages table, oldest first.

    Every realtime change triggers a full reload, and every reload is pushed
    to consumers of ``updates()`` as a complete ``FeedState``. The consumer
    owns the feed and must ``stop()`` it (or use ``async with``).
    """

    def __init__(self, storage: StorageService, since: Optional[datetime] = None, reload_delay: float = 5.0):
        self.storage = storage
        self.since = since
        self.reload_delay = reload_delay
        self.state = FeedState()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._channel = None
        self._tasks: set = set()
        self._restart_task: Optional[asyncio.Task] = None
        self._running = False

    async def __aenter__(self) -> 'MessageFeed':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self) -> None:
        self._running = True
        await self._connect()

    async def stop(self) -> None:
        logger.info("Cleaning up message listener")
        self._running = False
        pending = list(self._tasks)
        if self._restart_task is not None:
            pending.append(self._restart_task)
            self._restart_task = None
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        await self._close_channel()

    async def updates(self) -> AsyncIterator[FeedState]:
        while True:
            yield await self._queue.get()

    async def reload(self) -> bool:
        """Fetch the full visible set and publish it. Returns False on failure."""
        try:
            messages = await self.storage.list_messages(self.since)
        except Exception as e:
            self._fail(e)
            return False
        logger.info(f"Message snapshot received, records: {len(messages)}")
        self._publish(FeedState(messages=messages, loading=False, error=None))
        return True

    def _publish(self, state: FeedState) -> None:
        self.state = state
        self._queue.put_nowait(state)

    def _fail(self, error: Exception) -> None:
        if is_permission_error(error):
            logger.info("Permission denied - normal for a new database while access rules propagate")
            self._publish(FeedState(messages=self.state.messages, loading=False, error=PERMISSION_NOTICE))
            self._schedule_restart()
        else:
            message = ErrorHandler.handle_feed_error(error)
            self._publish(FeedState(messages=self.state.messages, loading=False, error=message))

    def _schedule_restart(self) -> None:
        if self._restart_task is None and self._running:
            self._restart_task = asyncio.get_running_loop().create_task(self._restart_later())

    async def _connect(self) -> None:
        logger.info("Setting up message listener...")
        if not await self.reload() or not self._running:
            return
        try:
            channel = await self.storage.subscribe(self._on_change, self._on_status)
        except Exception as e:
            self._fail(e)
            return
        if not self._running:
            # stop() finished while the subscription was opening
            await self.storage.unsubscribe(channel)
            return
        self._channel = channel

    async def _restart_later(self) -> None:
        # Stays registered as _restart_task until done so stop() can cancel it
        try:
            await asyncio.sleep(self.reload_delay)
            logger.info("Retrying message feed connection...")
            await self._close_channel()
            if self._running:
                await self._connect()
        finally:
            if self._restart_task is asyncio.current_task():
                self._restart_task = None

    async def _close_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is None:
            return
        try:
            await self.storage.unsubscribe(channel)
        except Exception as e:
            logger.error(f"Failed to close realtime channel: {str(e)}")

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_change(self, payload: Dict[str, Any]) -> None:
        if not self._running:
            return
        logger.debug(f"Realtime change: {payload}")
        self._spawn(self.reload())

    def _on_status(self, status: Any, error: Optional[Exception] = None) -> None:
        if not self._running:
            return
        state = str(getattr(status, 'value', status))
        logger.info(f"Realtime channel status: {state}")
        if state in ('CHANNEL_ERROR', 'TIMED_OUT'):
            self._fail(error or Exception(f"Realtime channel {state.lower()}"))


class FeedView:
    """Base for view models driven by a ``MessageFeed``.

    Once mounted the view owns the feed: ``unmount()`` cancels the consumer
    task, stops the countdown timer if there is one and stops the feed.
    """

    _timer = None
    _feed: Optional[MessageFeed] = None
    _feed_task: Optional[asyncio.Task] = None

    def apply(self, state: FeedState) -> None:
        raise NotImplementedError

    async def mount(self, feed: MessageFeed) -> None:
        self._feed = feed
        await feed.start()
        self._feed_task = asyncio.get_running_loop().create_task(self._consume(feed))
        if self._timer:
            self._timer.start()

    async def unmount(self) -> None:
        if self._timer:
            await self._timer.stop()
        if self._feed_task is not None:
            self._feed_task.cancel()
            try:
                await self._feed_task
            except asyncio.CancelledError:
                pass
            self._feed_task = None
        if self._feed is not None:
            await self._feed.stop()
            self._feed = None

    async def _consume(self, feed: MessageFeed) -> None:
        # Drain whatever start() already published before waiting
        async for state in feed.updates():
            self.apply(state)
