from datetime import datetime, timezone

from lib.text import truncate_utf16, utf16_length
from conftest import make_record


def test_utf16_length_counts_surrogate_pairs():
    assert utf16_length('abc') == 3
    assert utf16_length('é') == 1
    assert utf16_length('🏠') == 2
    assert utf16_length('') == 0


def test_truncate_leaves_short_text_alone():
    assert truncate_utf16('short', 10) == 'short'
    assert truncate_utf16('x' * 10, 10) == 'x' * 10


def test_truncate_appends_suffix():
    assert truncate_utf16('abcdefgh', 5) == 'abcde...'
    assert truncate_utf16('abcdefgh', 5, suffix='') == 'abcde'


def test_truncate_drops_split_surrogate_pair():
    # Cut falls between the two halves of the emoji
    assert truncate_utf16('ab🏠cd', 3, suffix='') == 'ab'
    assert truncate_utf16('ab🏠cd', 4, suffix='') == 'ab🏠'


def test_record_from_row_stringifies_id():
    record = make_record(id=42)

    assert record.id == '42'
    assert record.timestamp == datetime(2025, 7, 14, 1, 0, tzinfo=timezone.utc)
    assert record.is_pending is True


def test_to_view_uses_camel_case_and_millis():
    record = make_record(reply='Yes', is_from_stuart=True, read=True, reply_sid='SM1')

    view = record.to_view()

    assert view['isFromStuart'] is True
    assert view['questionLength'] == 42
    assert view['replySid'] == 'SM1'
    assert view['timestamp'] == 1752454800000
    assert 'replyTimestamp' not in view


def test_replied_record_is_not_pending():
    assert make_record(read=True).is_pending is False
    assert make_record(is_from_stuart=True).is_pending is False
