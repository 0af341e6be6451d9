import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from api.models import ExchangeRecord
from lib.text import utf16_length

logger = logging.getLogger(__name__)

STANDALONE_NAME = 'Stuart (SMS Reply)'
STANDALONE_QUESTION = 'Direct SMS Reply'

class StorageService:
    def __init__(self, supabase_client, realtime_client=None, table: str = 'messages'):
        self.supabase = supabase_client
        self.realtime = realtime_client
        self.messages_table = table
        logger.info(f"Storage service initialized for table '{table}' (realtime: {bool(realtime_client)})")

    def _table(self):
        return self.supabase.table(self.messages_table)

    @staticmethod
    def _check(result, action: str):
        if hasattr(result, 'error') and result.error:
            raise Exception(f"Supabase error {action}: {result.error}")
        return result.data or []

    async def create_question(self, name: str, question: str) -> str:
        """Insert a new unanswered question and return its id. The database assigns `timestamp`."""
        data = {
            'name': name,
            'question': question,
            'is_from_stuart': False,
            'read': False,
            'question_length': utf16_length(question)
        }
        logger.info(f"Storing question from {name}")
        rows = self._check(self._table().insert(data).execute(), 'storing question')
        if not rows:
            raise Exception("Supabase returned no row for inserted question")
        message_id = str(rows[0]['id'])
        logger.info(f"Message saved: {message_id}")
        return message_id

    async def find_latest_pending(self) -> Optional[ExchangeRecord]:
        """Most recently created question that nobody has answered yet."""
        result = self._table()\
            .select('*')\
            .eq('is_from_stuart', False)\
            .eq('read', False)\
            .order('timestamp', desc=True)\
            .limit(1)\
            .execute()
        rows = self._check(result, 'finding pending question')
        return ExchangeRecord.from_row(rows[0]) if rows else None

    async def attach_reply(self, message_id: str, reply: str, reply_sid: Optional[str] = None) -> None:
        update = {
            'reply': reply,
            'is_from_stuart': True,
            'read': True,
            'reply_timestamp': datetime.now(timezone.utc).isoformat(),
            'reply_sid': reply_sid
        }
        self._check(self._table().update(update).eq('id', message_id).execute(), 'attaching reply')

    async def create_standalone_reply(self, reply: str, reply_sid: Optional[str] = None) -> str:
        data = {
            'name': STANDALONE_NAME,
            'question': STANDALONE_QUESTION,
            'reply': reply,
            'is_from_stuart': True,
            'read': True,
            'reply_sid': reply_sid,
            'standalone': True
        }
        rows = self._check(self._table().insert(data).execute(), 'storing standalone reply')
        return str(rows[0]['id']) if rows else ''

    async def reply_to_message(self, message_id: str, reply: str) -> None:
        """Reply written straight from the admin panel, bypassing SMS."""
        update = {'reply': reply, 'is_from_stuart': True, 'read': True}
        self._check(self._table().update(update).eq('id', message_id).execute(), 'saving admin reply')

    async def list_messages(self, since: Optional[datetime] = None) -> List[ExchangeRecord]:
        """Every record, oldest first; only those created after `since` when given."""
        query = self._table().select('*')
        if since:
            query = query.gt('timestamp', since.isoformat())
        rows = self._check(query.order('timestamp', desc=False).execute(), 'listing messages')
        return [ExchangeRecord.from_row(row) for row in rows]

    async def subscribe(self, on_change: Callable[[Dict[str, Any]], None],
                        on_status: Callable[[Any, Optional[Exception]], None],
                        channel_name: str = 'messages-feed'):
        """Open a realtime channel on the messages table. Returns the channel for `unsubscribe`."""
        if self.realtime is None:
            raise Exception("Realtime client not configured")
        channel = self.realtime.channel(channel_name)
        channel.on_postgres_changes(
            '*',
            schema='public',
            table=self.messages_table,
            callback=on_change
        )
        await channel.subscribe(on_status)
        logger.info(f"Subscribed to realtime changes on '{self.messages_table}'")
        return channel

    async def unsubscribe(self, channel) -> None:
        if self.realtime is not None and channel is not None:
            await self.realtime.remove_channel(channel)
