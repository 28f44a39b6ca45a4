"""Notification dedup guard - one successful digest per recipient per window"""

from datetime import datetime, timedelta
from typing import Optional, Protocol, Tuple

from debt_reminders.domain.models import DigestType, OutboundDirection
from debt_reminders.utils.date_utils import start_of_iso_week, start_of_local_day


class SentLogReader(Protocol):
    """Read side of the outbound message log"""

    def exists_sent_in_window(
        self,
        workspace_id: str,
        recipient: str,
        digest_type: DigestType,
        direction: OutboundDirection,
        start: datetime,
        end: datetime,
    ) -> bool: ...


def digest_window(digest_type: DigestType, now: datetime) -> Tuple[datetime, datetime]:
    """
    Half-open [start, end) window a digest type is deduplicated over.

    DAILY: the local calendar day. WEEKLY: the ISO week, Monday 00:00 to the
    next Monday 00:00.
    """
    if digest_type == DigestType.DAILY:
        start = start_of_local_day(now)
        return start, start + timedelta(days=1)
    if digest_type == DigestType.WEEKLY:
        start = start_of_iso_week(now)
        return start, start + timedelta(days=7)
    raise ValueError(f"{digest_type.value} digests have no dedup window")


class DedupGuard:
    """Answers whether a digest already went out to a recipient in the current window"""

    def __init__(self, log_reader: SentLogReader):
        self.log_reader = log_reader

    def has_sent_in_window(
        self,
        workspace_id: str,
        recipient: str,
        digest_type: DigestType,
        direction: OutboundDirection,
        now: Optional[datetime] = None,
    ) -> bool:
        # Test sends are explicit user actions and never suppressed
        if digest_type == DigestType.TEST:
            return False

        start, end = digest_window(digest_type, now or datetime.now())
        return self.log_reader.exists_sent_in_window(
            workspace_id=workspace_id,
            recipient=recipient,
            digest_type=digest_type,
            direction=direction,
            start=start,
            end=end,
        )
