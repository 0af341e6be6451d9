import asyncio
import logging
import sys
from pathlib import Path

# Add project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from api.client import MessageClient
from api.services.feed import MessageFeed
from api.services.storage import StorageService
from api.widget import ChatWidget
from lib.config import Settings, get_settings
from lib.database import create_realtime_client, create_storage_client

logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


def build_widget(settings: Settings, storage: StorageService) -> ChatWidget:
    client = MessageClient(storage, settings.relay_url)
    return ChatWidget(client, settings.launch_date)


async def handle_line(widget: ChatWidget, line: str):
    """Feed one line of input to the widget: the name first, questions after."""
    if widget.has_set_name:
        widget.set_message(line)
    else:
        widget.set_name(line)
    return await widget.submit()


def render(widget: ChatWidget) -> str:
    lines = []
    if widget.countdown_badge:
        lines.append(f"[launch in {widget.countdown_badge}]")
    if widget.connection_notice:
        lines.append(widget.connection_notice)
    for message in widget.conversation:
        lines.append(f"You: {message.question}")
        if message.reply:
            lines.append(f"Stuart: {message.reply}")
    if widget.notice:
        lines.append(f"! {widget.notice}")
    lines.append(widget.greeting if not widget.conversation else widget.placeholder)
    return '\n'.join(lines)


async def chat():
    """Ask questions from the terminal the way the web widget does"""
    settings = get_settings()
    supabase = create_storage_client(settings)
    if supabase is None:
        print("SUPABASE_URL and SUPABASE_KEY must be set")
        return

    storage = StorageService(supabase, await create_realtime_client(settings), settings.messages_table)
    widget = build_widget(settings, storage)
    await widget.mount(MessageFeed(storage, reload_delay=settings.feed_reload_delay))
    loop = asyncio.get_running_loop()
    try:
        while True:
            print(render(widget))
            line = await loop.run_in_executor(None, input, '> ')
            if line.strip() in ('quit', 'exit'):
                break
            await handle_line(widget, line)
            # Give the realtime reload a moment to land before redrawing
            await asyncio.sleep(0.5)
    finally:
        await widget.unmount()


if __name__ == "__main__":
    try:
        asyncio.run(chat())
    except (KeyboardInterrupt, EOFError):
        pass
