"""Unit tests for the notification dedup guard"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import Mock
from debt_reminders.domain.dedup import DedupGuard, digest_window
from debt_reminders.domain.models import DigestType, OutboundDirection


class InMemorySentLog:
    """Sent-log reader backed by a list of (recipient, type, direction, sent_at)"""

    def __init__(self, entries=None):
        self.entries = list(entries or [])

    def exists_sent_in_window(self, workspace_id, recipient, digest_type, direction, start, end):
        return any(
            to == recipient and kind == digest_type and scope == direction and start <= sent_at < end
            for to, kind, scope, sent_at in self.entries
        )


NOW = datetime(2024, 3, 13, 10, 30)
MIDNIGHT = datetime(2024, 3, 13)


def test_daily_window_is_local_day():
    assert digest_window(DigestType.DAILY, NOW) == (MIDNIGHT, datetime(2024, 3, 14))


def test_weekly_window_is_iso_week():
    start, end = digest_window(DigestType.WEEKLY, datetime(2024, 3, 17, 22, 0))

    assert start == datetime(2024, 3, 11)
    assert end == datetime(2024, 3, 18)


def test_test_digest_has_no_window():
    with pytest.raises(ValueError):
        digest_window(DigestType.TEST, NOW)


def test_sent_at_midnight_blocks_the_day():
    """Window start is inclusive"""
    log = InMemorySentLog([("a@x.test", DigestType.DAILY, OutboundDirection.ALL, MIDNIGHT)])
    guard = DedupGuard(log)

    assert guard.has_sent_in_window("ws", "a@x.test", DigestType.DAILY, OutboundDirection.ALL, NOW)


def test_sent_just_before_midnight_does_not_block():
    log = InMemorySentLog(
        [("a@x.test", DigestType.DAILY, OutboundDirection.ALL, MIDNIGHT - timedelta(microseconds=1))]
    )
    guard = DedupGuard(log)

    assert not guard.has_sent_in_window("ws", "a@x.test", DigestType.DAILY, OutboundDirection.ALL, NOW)


def test_next_midnight_is_outside_the_window():
    """Window end is exclusive"""
    log = InMemorySentLog([("a@x.test", DigestType.DAILY, OutboundDirection.ALL, datetime(2024, 3, 14))])
    guard = DedupGuard(log)

    assert not guard.has_sent_in_window("ws", "a@x.test", DigestType.DAILY, OutboundDirection.ALL, NOW)


def test_weekly_sent_on_monday_blocks_sunday():
    log = InMemorySentLog([("a@x.test", DigestType.WEEKLY, OutboundDirection.ALL, datetime(2024, 3, 11, 7, 0))])
    guard = DedupGuard(log)

    assert guard.has_sent_in_window(
        "ws", "a@x.test", DigestType.WEEKLY, OutboundDirection.ALL, datetime(2024, 3, 17, 23, 0)
    )
    assert not guard.has_sent_in_window(
        "ws", "a@x.test", DigestType.WEEKLY, OutboundDirection.ALL, datetime(2024, 3, 18, 0, 0)
    )


def test_scoped_by_recipient_type_and_direction():
    log = InMemorySentLog([("a@x.test", DigestType.DAILY, OutboundDirection.RECEIVABLE, NOW)])
    guard = DedupGuard(log)

    assert not guard.has_sent_in_window("ws", "b@x.test", DigestType.DAILY, OutboundDirection.RECEIVABLE, NOW)
    assert not guard.has_sent_in_window("ws", "a@x.test", DigestType.WEEKLY, OutboundDirection.RECEIVABLE, NOW)
    assert not guard.has_sent_in_window("ws", "a@x.test", DigestType.DAILY, OutboundDirection.PAYABLE, NOW)
    assert guard.has_sent_in_window("ws", "a@x.test", DigestType.DAILY, OutboundDirection.RECEIVABLE, NOW)


def test_test_digests_never_deduplicated():
    """TEST sends skip the log lookup entirely"""
    log = Mock()
    guard = DedupGuard(log)

    assert guard.has_sent_in_window("ws", "a@x.test", DigestType.TEST, OutboundDirection.ALL, NOW) is False
    log.exists_sent_in_window.assert_not_called()


def test_guard_passes_window_to_reader():
    log = Mock()
    log.exists_sent_in_window.return_value = False
    guard = DedupGuard(log)

    guard.has_sent_in_window("ws-1", "a@x.test", DigestType.DAILY, OutboundDirection.PAYABLE, NOW)

    log.exists_sent_in_window.assert_called_once_with(
        workspace_id="ws-1",
        recipient="a@x.test",
        digest_type=DigestType.DAILY,
        direction=OutboundDirection.PAYABLE,
        start=MIDNIGHT,
        end=datetime(2024, 3, 14),
    )
