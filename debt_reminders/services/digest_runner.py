"""Scheduled digest runs: compose, deduplicate, send and log per recipient"""

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from debt_reminders.config import settings
from debt_reminders.domain.dedup import DedupGuard
from debt_reminders.domain.digests import build_daily_digests, build_weekly_digest
from debt_reminders.domain.exceptions import InvalidDebtTermsError, WorkspaceNotFoundError
from debt_reminders.domain.models import (
    Channel,
    DailyDigest,
    DigestType,
    Direction,
    MessageStatus,
    OutboundDirection,
    OutcomeReason,
    RecipientMode,
    RunReport,
    SendResult,
    WeeklyDigest,
)
from debt_reminders.infrastructure.clients.mailer import MailerClient
from debt_reminders.infrastructure.database.models import EmailSettings
from debt_reminders.infrastructure.database.repositories import (
    EmailSettingsRepository,
    MemberRepository,
    OutboundMessageLogRepository,
    TemplateRepository,
    WorkspaceRepository,
)
from debt_reminders.infrastructure.observability.logging import log_digest_outcome, log_digest_run
from debt_reminders.infrastructure.observability.metrics import record_digest_outcome
from debt_reminders.services.alerts import get_alerts_data

Digest = Union[DailyDigest, WeeklyDigest]

NO_ALERTS_SUBJECT = "Sin alertas"
PLACEHOLDER_SUBJECTS = {
    DigestType.DAILY: "Daily reminders",
    DigestType.WEEKLY: "Weekly summary",
}


class DigestRunner:
    """
    Runs daily and weekly digests for one or all workspaces.

    Every attempt ends in exactly one log entry per recipient (SENT, SKIPPED
    or FAILED with a reason). A recipient that already received the digest
    in the current window is skipped with ALREADY_SENT. A failed recipient
    never stops the rest of the batch, and a workspace with malformed debt
    terms gets one FAILED entry (INVALID_TERMS) while the others still run.
    """

    def __init__(
        self,
        db: Session,
        mailer: MailerClient,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.mailer = mailer
        self.clock = clock
        self.workspaces = WorkspaceRepository(db)
        self.email_settings = EmailSettingsRepository(db)
        self.members = MemberRepository(db)
        self.templates = TemplateRepository(db)
        self.log = OutboundMessageLogRepository(db)
        self.guard = DedupGuard(self.log)

    async def run_daily(
        self,
        workspace_id: Optional[str] = None,
        direction: Optional[Direction] = None,
        to_email: Optional[str] = None,
    ) -> RunReport:
        return await self._run(DigestType.DAILY, workspace_id, direction, to_email)

    async def run_weekly(
        self,
        workspace_id: Optional[str] = None,
        direction: Optional[Direction] = None,
        to_email: Optional[str] = None,
    ) -> RunReport:
        return await self._run(DigestType.WEEKLY, workspace_id, direction, to_email)

    def compose(
        self,
        digest_type: DigestType,
        workspace_id: str,
        workspace_name: str,
        direction: Optional[Direction] = None,
    ) -> List[Digest]:
        """Digests for a workspace; empty when there are no alerts"""
        alerts = get_alerts_data(self.db, workspace_id, direction, as_of=self.clock())
        if digest_type == DigestType.DAILY:
            return build_daily_digests(
                alerts,
                workspace_name,
                lambda tone: self.templates.get(workspace_id, Channel.EMAIL, tone),
            )
        weekly = build_weekly_digest(alerts, workspace_name, top_items=settings.weekly_top_items)
        return [weekly] if weekly else []

    async def send_test(
        self,
        workspace_id: str,
        to_email: str,
        digest_type: DigestType,
        direction: Optional[Direction] = None,
    ) -> SendResult:
        """
        Compose one digest and send it to a single address, bypassing dedup.

        Raises:
            WorkspaceNotFoundError: When the workspace does not exist
        """
        workspace = self.workspaces.get(workspace_id)
        if workspace is None:
            raise WorkspaceNotFoundError(f"Workspace {workspace_id} not found")

        digests = self.compose(digest_type, workspace_id, workspace.name, direction)
        subject, text, html = NO_ALERTS_SUBJECT, "", None
        if digests:
            subject, text, html = digests[0].subject, digests[0].text, digests[0].html

        result = await self._deliver(to_email, subject, text, html)
        self.log.append(
            workspace_id=workspace_id,
            digest_type=DigestType.TEST,
            direction=OutboundDirection.from_direction(direction),
            status=result.status,
            to=to_email,
            subject=subject,
            body_text=text,
            body_html=html,
            reason=self._reason_text(result),
            sent_at=self.clock(),
            meta={"type": digest_type.value, "direction": direction.value if direction else None},
        )
        self.db.commit()
        record_digest_outcome(DigestType.TEST, result.status, result.reason)
        return result

    async def _run(
        self,
        digest_type: DigestType,
        workspace_id: Optional[str],
        direction: Optional[Direction],
        to_email: Optional[str],
    ) -> RunReport:
        start_time = time.time()
        report = RunReport()
        workspace_ids = [workspace_id] if workspace_id else self.workspaces.list_ids()
        report.processed_workspaces = len(workspace_ids)

        for ws_id in workspace_ids:
            try:
                await self._run_workspace(report, digest_type, ws_id, direction, to_email)
            except InvalidDebtTermsError as e:
                # A workspace with malformed debts is logged and the run moves on
                self.db.rollback()
                logging.error(
                    f"Digest run failed for workspace: {e}",
                    extra={"workspace_id": ws_id, "digest_type": digest_type.value},
                )
                self._fail_workspace(report, digest_type, ws_id, direction, e)

        log_digest_run(digest_type, report, (time.time() - start_time) * 1000)
        return report

    async def _run_workspace(
        self,
        report: RunReport,
        digest_type: DigestType,
        workspace_id: str,
        direction: Optional[Direction],
        to_email: Optional[str],
    ) -> None:
        workspace = self.workspaces.get(workspace_id)
        if workspace is None:
            logging.warning("Workspace not found, skipping digest", extra={"workspace_id": workspace_id})
            return

        scope = OutboundDirection.from_direction(direction)
        settings_row = self.email_settings.get_or_default(workspace_id)
        enabled = settings_row.daily_enabled if digest_type == DigestType.DAILY else settings_row.weekly_enabled
        if not enabled:
            self._skip(report, digest_type, workspace_id, scope, OutcomeReason.DISABLED)
            return

        recipients = self._resolve_recipients(workspace_id, settings_row, to_email)
        if not recipients:
            self._skip(report, digest_type, workspace_id, scope, OutcomeReason.NO_RECIPIENTS)
            return

        digests = self.compose(digest_type, workspace_id, workspace.name, direction)
        if not digests:
            self._skip(report, digest_type, workspace_id, scope, OutcomeReason.NO_ITEMS, to=",".join(recipients))
            return

        for recipient in recipients:
            # Checked once per recipient so every person's daily digest of the batch goes out
            already_sent = self.guard.has_sent_in_window(
                workspace_id, recipient, digest_type, scope, now=self.clock()
            )
            for digest in digests:
                if already_sent:
                    self._record(report, digest_type, workspace_id, scope, recipient, digest,
                                 SendResult(status=MessageStatus.SKIPPED, reason=OutcomeReason.ALREADY_SENT))
                    continue
                result = await self._deliver(recipient, digest.subject, digest.text, digest.html)
                self._record(report, digest_type, workspace_id, scope, recipient, digest, result)

    def _resolve_recipients(
        self, workspace_id: str, settings_row: EmailSettings, to_email: Optional[str]
    ) -> List[str]:
        if to_email:
            return [to_email]
        if settings_row.to_mode == RecipientMode.CUSTOM.value:
            custom = settings_row.to_emails or []
            return unique_recipients([e.strip() for e in custom if isinstance(e, str) and e.strip()])
        return unique_recipients(self.members.owner_emails(workspace_id))

    async def _deliver(self, to: str, subject: str, text: str, html: Optional[str]) -> SendResult:
        try:
            return await self.mailer.send(to, subject, text, html)
        except Exception as e:
            # Any transport error becomes this recipient's FAILED entry; the batch continues
            logging.error(f"Mail delivery raised: {e}", extra={"to": to})
            return SendResult(status=MessageStatus.FAILED, reason=OutcomeReason.DELIVERY_FAILED, error_message=str(e))

    def _fail_workspace(
        self,
        report: RunReport,
        digest_type: DigestType,
        workspace_id: str,
        direction: Optional[Direction],
        error: InvalidDebtTermsError,
    ) -> None:
        scope = OutboundDirection.from_direction(direction)
        self.log.append(
            workspace_id=workspace_id,
            digest_type=digest_type,
            direction=scope,
            status=MessageStatus.FAILED,
            subject=PLACEHOLDER_SUBJECTS[digest_type],
            reason=str(error),
            meta={"type": digest_type.value, "direction": scope.value},
        )
        self.db.commit()
        self._count(report, digest_type, workspace_id, "", MessageStatus.FAILED, OutcomeReason.INVALID_TERMS)

    @staticmethod
    def _reason_text(result: SendResult) -> Optional[str]:
        if result.error_message:
            return result.error_message
        return result.reason.value if result.reason else None

    def _skip(
        self,
        report: RunReport,
        digest_type: DigestType,
        workspace_id: str,
        scope: OutboundDirection,
        reason: OutcomeReason,
        to: str = "",
    ) -> None:
        self.log.append(
            workspace_id=workspace_id,
            digest_type=digest_type,
            direction=scope,
            status=MessageStatus.SKIPPED,
            to=to,
            subject=PLACEHOLDER_SUBJECTS[digest_type],
            reason=reason.value,
            meta={"type": digest_type.value, "direction": scope.value},
        )
        self.db.commit()
        self._count(report, digest_type, workspace_id, to, MessageStatus.SKIPPED, reason)

    def _record(
        self,
        report: RunReport,
        digest_type: DigestType,
        workspace_id: str,
        scope: OutboundDirection,
        recipient: str,
        digest: Digest,
        result: SendResult,
    ) -> None:
        meta = {"type": digest_type.value, "direction": scope.value}
        if isinstance(digest, DailyDigest):
            meta["person_id"] = digest.person_id
        self.log.append(
            workspace_id=workspace_id,
            digest_type=digest_type,
            direction=scope,
            status=result.status,
            to=recipient,
            subject=digest.subject,
            body_text=digest.text,
            body_html=digest.html,
            reason=self._reason_text(result),
            sent_at=self.clock(),
            meta=meta,
        )
        # Commit per recipient: the log is what the next run deduplicates against
        self.db.commit()
        self._count(report, digest_type, workspace_id, recipient, result.status, result.reason)

    @staticmethod
    def _count(
        report: RunReport,
        digest_type: DigestType,
        workspace_id: str,
        recipient: str,
        status: MessageStatus,
        reason: Optional[OutcomeReason],
    ) -> None:
        report.record(status, reason)
        record_digest_outcome(digest_type, status, reason)
        log_digest_outcome(workspace_id, digest_type, recipient, status, reason)


def unique_recipients(recipients: Sequence[str]) -> List[str]:
    """Drop duplicate addresses, keeping first occurrence order"""
    return list(dict.fromkeys(recipients))
