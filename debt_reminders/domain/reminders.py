"""Suggested reminders and open-balance totals built on the ledger and the alert feed"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from debt_reminders.domain.ledger import compute_debt_balance
from debt_reminders.domain.models import (
    AlertItem,
    AlertKind,
    AlertsData,
    DashboardTotals,
    DebtRecord,
    PersonRecord,
    ReminderChannels,
    SuggestedReminder,
    SuggestedReminders,
    Tone,
)
from debt_reminders.utils.date_utils import local_date_key

# Separate from the digest tone map; due-today and due-soon stay soft here
SUGGESTED_TONE_BY_KIND = {
    AlertKind.OVERDUE: Tone.NORMAL,
    AlertKind.PROMISE_TODAY: Tone.SOFT,
    AlertKind.DUE_TODAY: Tone.SOFT,
    AlertKind.DUE_SOON: Tone.SOFT,
    AlertKind.HIGH_PRIORITY: Tone.STRONG,
}


def suggested_reminder_id(kind: AlertKind, debt_id: str, as_of_local_date: str) -> str:
    """One id per alert kind, debt and local day"""
    return f"{kind.value}:{debt_id}:{as_of_local_date}"


def to_suggested_reminder(
    item: AlertItem,
    as_of_local_date: str,
    person: Optional[PersonRecord],
) -> SuggestedReminder:
    phone = (person.phone if person else None) or item.person_phone
    email = person.email if person else None
    return SuggestedReminder(
        id=suggested_reminder_id(item.kind, item.debt_id, as_of_local_date),
        kind=item.kind,
        direction=item.direction,
        debt_id=item.debt_id,
        person_id=item.person_id,
        person_name=item.person_name,
        person_phone=phone,
        debt_title=item.debt_title,
        balance=item.balance,
        due_date=item.due_date,
        promised_date=item.promised_date,
        recommended_tone=SUGGESTED_TONE_BY_KIND[item.kind],
        channels=ReminderChannels(whatsapp=bool(phone), email=bool(email), sms=bool(phone)),
    )


def suggest_reminders(alerts: AlertsData, persons: Mapping[str, PersonRecord]) -> SuggestedReminders:
    """
    One suggested reminder per alert item, in the feed's order.

    Args:
        alerts: Classified alert feed
        persons: Contact details by person id; missing persons fall back to the
            phone already on the alert item and have no email

    Returns:
        SuggestedReminders with channels enabled by the contact details on file
    """
    return SuggestedReminders(
        workspace_id=alerts.workspace_id,
        as_of_local_date=alerts.as_of_local_date,
        items=[
            to_suggested_reminder(item, alerts.as_of_local_date, persons.get(item.person_id))
            for item in alerts.items
        ],
    )


def sum_open_totals(
    debts: Iterable[DebtRecord],
    payment_sums: Mapping[str, Decimal],
    as_of: Optional[datetime] = None,
) -> DashboardTotals:
    """
    Open balance per direction, split into overdue and due today.

    Settled debts (balance 0 or less) are left out. A debt without a due date
    only counts towards the open total.

    Raises:
        InvalidDebtTermsError: When a debt's terms are malformed
    """
    as_of = as_of or datetime.now()
    today_key = local_date_key(as_of)
    totals = DashboardTotals()

    for debt in debts:
        balance = compute_debt_balance(debt.terms, payment_sums.get(debt.id, Decimal("0")), as_of)
        if balance <= 0:
            continue

        bucket = totals.for_direction(debt.direction)
        bucket.total_open += balance
        if debt.terms.due_date is None:
            continue
        due_key = local_date_key(debt.terms.due_date)
        if due_key < today_key:
            bucket.overdue += balance
        elif due_key == today_key:
            bucket.due_today += balance

    return totals
