import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from api.services.feed import MessageFeed
from api.services.storage import StorageService
from lib.config import get_settings
from lib.database import create_realtime_client, create_storage_client

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def watch(since=None):
    """Print every message snapshot until interrupted"""
    settings = get_settings()
    supabase = create_storage_client(settings)
    if supabase is None:
        print("SUPABASE_URL and SUPABASE_KEY must be set")
        return

    storage = StorageService(supabase, await create_realtime_client(settings), settings.messages_table)
    async with MessageFeed(storage, since=since, reload_delay=settings.feed_reload_delay) as feed:
        async for state in feed.updates():
            if state.error:
                print(f"! {state.error}")
                continue
            print(f"--- {len(state.messages)} messages")
            for message in state.messages:
                status = 'replied' if message.read else 'pending'
                print(f"[{status}] {message.name}: {message.question}")
                if message.reply:
                    print(f"    -> {message.reply}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Watch chat messages live")
    parser.add_argument('--since', type=datetime.fromisoformat, help="only messages created after this ISO time")
    args = parser.parse_args()
    try:
        asyncio.run(watch(args.since))
    except KeyboardInterrupt:
        pass
