import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from twilio.base.exceptions import TwilioRestException

from api.services.sms import SMSService, format_local_time
from lib.error_handler import AppError
from lib.twilio_client import TwilioClient
from conftest import ADMIN_NUMBER, TWILIO_NUMBER


def test_format_local_time():
    assert format_local_time(datetime(2025, 7, 14, 9, 5, 3)) == '14/07/2025, 9:05:03 am'
    assert format_local_time(datetime(2025, 7, 14, 0, 0, 0)) == '14/07/2025, 12:00:00 am'
    assert format_local_time(datetime(2025, 12, 1, 15, 30, 9)) == '01/12/2025, 3:30:09 pm'


def test_notification_body(sms_service):
    # 23:00 UTC is 09:00 the next morning in Sydney (AEST)
    now = datetime(2025, 7, 13, 23, 0, 0, tzinfo=timezone.utc)

    body = sms_service.format_notification('Jane', 'Can you value a farm?', 'msg-1', now=now)

    assert body.startswith('🏛️ New Ask Stuart Question\n\nFrom: Jane\n')
    assert 'Question: Can you value a farm?\n' in body
    assert 'Message ID: msg-1\n' in body
    assert 'Time: 14/07/2025, 9:00:00 am' in body
    assert body.endswith('📱 Reply via admin panel for instant chat response')


def test_long_question_truncated_in_sms(sms_service):
    body = sms_service.format_notification('Jane', 'q' * 130, 'msg-1')

    assert f"Question: {'q' * 120}...\n" in body


@pytest.mark.asyncio
async def test_sent_outcome(sms_service, mock_twilio):
    outcome = await sms_service.notify_new_question('Jane', 'Question?', 'msg-1')

    assert outcome.status == 'sent'
    assert outcome.details == {'messageSid': 'SM_test_sid', 'from': TWILIO_NUMBER, 'to': ADMIN_NUMBER}
    from_number, to_number, body = mock_twilio.send_message.call_args[0]
    assert (from_number, to_number) == (TWILIO_NUMBER, ADMIN_NUMBER)
    assert 'Message ID: msg-1' in body


@pytest.mark.asyncio
async def test_carrier_rejection_reported(sms_service, mock_twilio):
    mock_twilio.send_message.side_effect = AppError("Invalid phone number format.", code=21211)

    outcome = await sms_service.notify_new_question('Jane', 'Question?', 'msg-1')

    assert outcome.status == 'failed'
    assert outcome.details == {'error': 'Invalid phone number format.', 'code': 21211}


@pytest.mark.asyncio
async def test_unconfigured_outcomes(mock_twilio):
    assert (await SMSService(None, TWILIO_NUMBER, ADMIN_NUMBER)
            .notify_new_question('Jane', 'Q', 'id')).status == 'not_configured'

    outcome = await SMSService(mock_twilio, TWILIO_NUMBER, '').notify_new_question('Jane', 'Q', 'id')
    assert outcome.status == 'numbers_not_configured'
    assert outcome.details['toNumber'] == 'not_set'
    mock_twilio.send_message.assert_not_called()


def test_twilio_client_returns_sid():
    rest = MagicMock()
    rest.messages.create.return_value.sid = 'SM123'

    sid = TwilioClient('AC', 'token', client=rest).send_message(TWILIO_NUMBER, ADMIN_NUMBER, 'hello')

    assert sid == 'SM123'
    rest.messages.create.assert_called_once_with(body='hello', from_=TWILIO_NUMBER, to=ADMIN_NUMBER)


@pytest.mark.parametrize('code,expected', [
    (21608, 'This phone number is not verified with our test account.'),
    (21211, 'Invalid phone number format.'),
    (30003, 'Failed to send message: Unreachable'),
])
def test_twilio_client_maps_errors(code, expected):
    rest = MagicMock()
    rest.messages.create.side_effect = TwilioRestException(400, '/Messages', msg='Unreachable', code=code)

    with pytest.raises(AppError) as exc_info:
        TwilioClient('AC', 'token', client=rest).send_message(TWILIO_NUMBER, ADMIN_NUMBER, 'hello')

    assert exc_info.value.message == expected
    assert exc_info.value.code == code


def test_twilio_client_skipped_without_credentials(settings):
    settings.twilio_auth_token = ''

    assert TwilioClient.from_settings(settings) is None
