import pytest
from unittest.mock import AsyncMock, patch

from api.services.feed import FeedState
from scripts.chat_session import build_widget, handle_line, render
from conftest import make_record


@pytest.mark.asyncio
async def test_session_sends_through_configured_relay(settings, mock_storage):
    settings.relay_url = 'https://chat.example.com/api/messages-post'
    widget = build_widget(settings, mock_storage)

    assert widget.client.relay_url == 'https://chat.example.com/api/messages-post'
    with patch.object(widget.client, 'notify_relay', AsyncMock()) as notify:
        assert await handle_line(widget, 'Jane Smith') is None
        assert await handle_line(widget, 'Do you value farms?') == 'msg-123'

    mock_storage.create_question.assert_awaited_once_with('Jane Smith', 'Do you value farms?')
    notify.assert_awaited_once_with('Jane Smith', 'Do you value farms?')


@pytest.mark.asyncio
async def test_render_shows_own_conversation(settings, mock_storage):
    widget = build_widget(settings, mock_storage)
    await handle_line(widget, 'Jane')
    widget.apply(FeedState(messages=[
        make_record(name='Jane', question='Farm valuation?', reply='Yes', read=True, is_from_stuart=True),
        make_record(name='Someone Else', question='Not mine'),
    ], loading=False))

    screen = render(widget)

    assert 'You: Farm valuation?' in screen
    assert 'Stuart: Yes' in screen
    assert 'Not mine' not in screen
