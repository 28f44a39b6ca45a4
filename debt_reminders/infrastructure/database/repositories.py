"""Data access layer: read models for the ledger core and the outbound log"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from debt_reminders.domain import models as domain
from debt_reminders.domain.ledger import to_decimal
from debt_reminders.infrastructure.database.models import (
    Debt,
    EmailSettings,
    Member,
    OutboundMessageLog,
    Payment,
    Person,
    Promise,
    ReminderTemplate,
    Workspace,
)

PREVIEW_LENGTH = 200


def to_terms(debt: Debt) -> domain.DebtTerms:
    return domain.DebtTerms(
        id=debt.id,
        amount_original=Decimal(debt.amount_original),
        issued_at=debt.issued_at,
        has_interest=debt.has_interest,
        interest_rate_pct=Decimal(debt.interest_rate_pct) if debt.interest_rate_pct is not None else None,
        interest_period=debt.interest_period,
        due_date=debt.due_date,
        min_suggested_payment=(
            Decimal(debt.min_suggested_payment) if debt.min_suggested_payment is not None else None
        ),
        split_count=debt.split_count,
    )


def to_record(debt: Debt) -> domain.DebtRecord:
    return domain.DebtRecord(
        terms=to_terms(debt),
        person_id=debt.person_id,
        direction=domain.Direction(debt.direction),
        title=debt.title,
    )


def to_person(person: Person) -> domain.PersonRecord:
    return domain.PersonRecord(
        id=person.id,
        name=person.name,
        phone=person.phone,
        email=person.email,
        priority=domain.Priority(person.priority) if person.priority else None,
    )


class WorkspaceRepository:
    """Repository for workspaces"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, workspace_id: str) -> Optional[Workspace]:
        return self.db.query(Workspace).filter(Workspace.id == workspace_id).first()

    def list_ids(self) -> List[str]:
        return [row.id for row in self.db.query(Workspace.id).order_by(Workspace.created_at).all()]


class DebtRepository:
    """Repository for debts and their payment totals"""

    def __init__(self, db: Session):
        self.db = db

    def list_open(self, workspace_id: str, direction: Optional[domain.Direction] = None) -> List[Debt]:
        """Non-deleted debts whose person is not deleted either"""
        query = (
            self.db.query(Debt)
            .join(Person, Debt.person_id == Person.id)
            .filter(
                Debt.workspace_id == workspace_id,
                Debt.deleted_at.is_(None),
                Person.deleted_at.is_(None),
            )
        )
        if direction is not None:
            query = query.filter(Debt.direction == direction.value)
        return query.order_by(Debt.created_at).all()

    def get(self, workspace_id: str, debt_id: str) -> Optional[Debt]:
        return (
            self.db.query(Debt)
            .filter(Debt.id == debt_id, Debt.workspace_id == workspace_id, Debt.deleted_at.is_(None))
            .first()
        )

    def payment_sums(self, workspace_id: str, debt_ids: Sequence[str]) -> Dict[str, Decimal]:
        """Sum of payments per debt; debts without payments are absent"""
        if not debt_ids:
            return {}
        rows = (
            self.db.query(Payment.debt_id, func.sum(Payment.amount))
            .filter(Payment.workspace_id == workspace_id, Payment.debt_id.in_(debt_ids))
            .group_by(Payment.debt_id)
            .all()
        )
        return {debt_id: to_decimal(total) for debt_id, total in rows}


class PersonRepository:
    """Repository for debt counterparties"""

    def __init__(self, db: Session):
        self.db = db

    def contacts(self, workspace_id: str, person_ids: Sequence[str]) -> Dict[str, domain.PersonRecord]:
        """Non-deleted persons by id; unknown or deleted ids are absent"""
        if not person_ids:
            return {}
        rows = (
            self.db.query(Person)
            .filter(
                Person.workspace_id == workspace_id,
                Person.id.in_(list(dict.fromkeys(person_ids))),
                Person.deleted_at.is_(None),
            )
            .all()
        )
        return {row.id: to_person(row) for row in rows}


class PromiseRepository:
    """Repository for promises-to-pay"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_debts(self, workspace_id: str, debt_ids: Sequence[str]) -> List[domain.PromiseRecord]:
        if not debt_ids:
            return []
        rows = (
            self.db.query(Promise)
            .filter(Promise.workspace_id == workspace_id, Promise.debt_id.in_(debt_ids))
            .order_by(Promise.created_at.desc())
            .all()
        )
        return [
            domain.PromiseRecord(debt_id=p.debt_id, promised_date=p.promised_date, created_at=p.created_at)
            for p in rows
        ]


class TemplateRepository:
    """Repository for reminder templates"""

    def __init__(self, db: Session):
        self.db = db

    def get(
        self, workspace_id: str, channel: domain.Channel, tone: domain.Tone
    ) -> Optional[domain.ReminderTemplate]:
        """Template for (workspace, channel, tone); None means use default copy"""
        row = (
            self.db.query(ReminderTemplate)
            .filter(
                ReminderTemplate.workspace_id == workspace_id,
                ReminderTemplate.channel == channel.value,
                ReminderTemplate.tone == tone.value,
            )
            .first()
        )
        if row is None:
            return None
        return domain.ReminderTemplate(channel=channel, tone=tone, title=row.title, body=row.body)


class EmailSettingsRepository:
    """Repository for per-workspace digest settings"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_default(self, workspace_id: str) -> EmailSettings:
        """Stored settings, or an unsaved row carrying the defaults"""
        existing = self.db.query(EmailSettings).filter(EmailSettings.workspace_id == workspace_id).first()
        if existing is not None:
            return existing
        return EmailSettings(
            workspace_id=workspace_id,
            daily_enabled=True,
            weekly_enabled=True,
            to_mode=domain.RecipientMode.OWNERS.value,
            to_emails=[],
        )


class MemberRepository:
    """Repository for workspace members"""

    def __init__(self, db: Session):
        self.db = db

    def owner_emails(self, workspace_id: str) -> List[str]:
        rows = (
            self.db.query(Member.email)
            .filter(Member.workspace_id == workspace_id, Member.role == "OWNER")
            .order_by(Member.email)
            .all()
        )
        return [row.email for row in rows]


class OutboundMessageLogRepository:
    """Append-only log of digest attempts"""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        workspace_id: str,
        digest_type: domain.DigestType,
        direction: domain.OutboundDirection,
        status: domain.MessageStatus,
        to: str = "",
        subject: str = "",
        body_text: str = "",
        body_html: Optional[str] = None,
        reason: Optional[str] = None,
        sent_at: Optional[datetime] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> OutboundMessageLog:
        """Record one outcome; sent_at defaults to now for SENT entries"""
        if status == domain.MessageStatus.SENT and sent_at is None:
            sent_at = datetime.now()
        entry = OutboundMessageLog(
            workspace_id=workspace_id,
            channel=domain.Channel.EMAIL.value,
            to=to,
            subject=subject,
            body_text=body_text,
            body_html=body_html,
            body_preview=body_text[:PREVIEW_LENGTH],
            status=status.value,
            type=digest_type.value,
            direction=direction.value,
            error_message=reason,
            sent_at=sent_at if status == domain.MessageStatus.SENT else None,
            meta=meta,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def exists_sent_in_window(
        self,
        workspace_id: str,
        recipient: str,
        digest_type: domain.DigestType,
        direction: domain.OutboundDirection,
        start: datetime,
        end: datetime,
    ) -> bool:
        found = (
            self.db.query(OutboundMessageLog.id)
            .filter(
                OutboundMessageLog.workspace_id == workspace_id,
                OutboundMessageLog.to == recipient,
                OutboundMessageLog.type == digest_type.value,
                OutboundMessageLog.direction == direction.value,
                OutboundMessageLog.status == domain.MessageStatus.SENT.value,
                OutboundMessageLog.sent_at >= start,
                OutboundMessageLog.sent_at < end,
            )
            .first()
        )
        return found is not None

    def list_recent(self, workspace_id: str, limit: int = 50) -> List[OutboundMessageLog]:
        return (
            self.db.query(OutboundMessageLog)
            .filter(OutboundMessageLog.workspace_id == workspace_id)
            .order_by(OutboundMessageLog.created_at.desc())
            .limit(limit)
            .all()
        )
