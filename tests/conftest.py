import pytest
from unittest.mock import AsyncMock, MagicMock
import sys
from pathlib import Path

# Add project root to Python path
project_root = str(Path(__file__).parent.parent)
sys.path.append(project_root)

from api.models import ExchangeRecord
from api.routes import create_app
from api.services.sms import SMSService
from api.services.storage import StorageService
from lib.config import Settings
from lib.twilio_client import TwilioClient

ADMIN_NUMBER = '+61400000000'
TWILIO_NUMBER = '+15550001111'


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        supabase_url='https://test-project.supabase.co',
        supabase_key='test-key',
        twilio_account_sid='AC_test_sid',
        twilio_auth_token='test-token',
        twilio_phone_number=TWILIO_NUMBER,
        sms_recipient=ADMIN_NUMBER
    )


@pytest.fixture
def mock_storage():
    """Storage double; every method is an AsyncMock"""
    mock = MagicMock(spec=StorageService)
    mock.create_question = AsyncMock(return_value='msg-123')
    mock.find_latest_pending = AsyncMock(return_value=None)
    mock.attach_reply = AsyncMock()
    mock.create_standalone_reply = AsyncMock(return_value='standalone-1')
    mock.reply_to_message = AsyncMock()
    mock.list_messages = AsyncMock(return_value=[])
    mock.subscribe = AsyncMock(return_value='channel')
    mock.unsubscribe = AsyncMock()
    return mock


@pytest.fixture
def mock_twilio():
    mock = MagicMock(spec=TwilioClient)
    mock.send_message.return_value = 'SM_test_sid'
    return mock


@pytest.fixture
def sms_service(mock_twilio):
    return SMSService(mock_twilio, TWILIO_NUMBER, ADMIN_NUMBER)


@pytest.fixture
def app(settings, mock_storage, sms_service):
    app = create_app(settings, mock_storage, sms_service)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def test_client(app):
    return app.test_client()


def make_record(**overrides):
    row = {
        'id': 'rec-1',
        'name': 'Jane Smith, Smith Legal',
        'question': 'How is super treated in a property split?',
        'timestamp': '2025-07-14T01:00:00+00:00',
        'is_from_stuart': False,
        'read': False,
        'question_length': 42
    }
    row.update(overrides)
    return ExchangeRecord.from_row(row)
