"""Alert classifier - buckets every open debt into at most one time-sensitive alert"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from debt_reminders.domain.ledger import compute_debt_summary, round2
from debt_reminders.domain.models import (
    KIND_PRIORITY,
    AlertItem,
    AlertKind,
    AlertsData,
    AlertsSummary,
    DebtRecord,
    Direction,
    PersonRecord,
    Priority,
    PromiseRecord,
)
from debt_reminders.utils.date_utils import diff_local_days, local_date_key, to_local_date

DEFAULT_LIMIT = 50
DEFAULT_DUE_SOON_DAYS = 3
UNTITLED_DEBT = "Sin titulo"


def promises_due_today(promises: Iterable[PromiseRecord], today_key: str) -> Dict[str, PromiseRecord]:
    """
    Promise falling due today for each debt.

    When a debt has several promises for today, the most recently created wins.
    """
    latest: Dict[str, PromiseRecord] = {}
    for promise in promises:
        if local_date_key(promise.promised_date) != today_key:
            continue
        current = latest.get(promise.debt_id)
        if current is None or promise.created_at > current.created_at:
            latest[promise.debt_id] = promise
    return latest


def resolve_alert_kind(
    debt: DebtRecord,
    person: PersonRecord,
    as_of: datetime,
    promise_today: Optional[PromiseRecord],
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> Optional[AlertKind]:
    """
    Pick the single alert kind for an open debt.

    Precedence: OVERDUE > PROMISE_TODAY > DUE_TODAY > DUE_SOON > HIGH_PRIORITY.
    Returns None when nothing applies.
    """
    today_key = local_date_key(as_of)
    due_date = debt.terms.due_date
    due_key = local_date_key(due_date) if due_date is not None else None

    if due_key is not None and due_key < today_key:
        return AlertKind.OVERDUE
    if promise_today is not None:
        return AlertKind.PROMISE_TODAY
    if due_key is not None and due_key == today_key:
        return AlertKind.DUE_TODAY
    if due_date is not None and 1 <= diff_local_days(as_of, due_date) <= due_soon_days:
        return AlertKind.DUE_SOON
    if person.priority == Priority.HIGH:
        return AlertKind.HIGH_PRIORITY
    return None


def summarize_alerts(items: Iterable[AlertItem]) -> AlertsSummary:
    """Count alerts per direction and kind"""
    summary = AlertsSummary()
    for item in items:
        summary.for_direction(item.direction).bump(item.kind)
    return summary


def sort_alerts(items: Iterable[AlertItem]) -> List[AlertItem]:
    """Most urgent kind first, then largest balance first"""
    return sorted(items, key=lambda item: (KIND_PRIORITY[item.kind], -item.balance))


def classify_alerts(
    workspace_id: str,
    debts: Iterable[DebtRecord],
    persons: Mapping[str, PersonRecord],
    payment_sums: Mapping[str, Decimal],
    promises: Iterable[PromiseRecord],
    as_of: Optional[datetime] = None,
    direction: Optional[Direction] = None,
    limit: int = DEFAULT_LIMIT,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> AlertsData:
    """
    Main entry point: classify, summarize and rank the alerts of a workspace.

    Debts whose person is missing (deleted) or whose balance is not positive
    are dropped. The summary counts every alert; items are capped at `limit`.
    """
    as_of = as_of or datetime.now()
    today_key = local_date_key(as_of)
    promise_by_debt = promises_due_today(promises, today_key)

    items: List[AlertItem] = []
    for debt in debts:
        if direction is not None and debt.direction != direction:
            continue
        person = persons.get(debt.person_id)
        if person is None:
            continue

        summary = compute_debt_summary(debt.terms, payment_sums.get(debt.id, Decimal("0")), as_of)
        balance = round2(summary.balance)
        if balance <= 0:
            continue

        promise_today = promise_by_debt.get(debt.id)
        kind = resolve_alert_kind(debt, person, as_of, promise_today, due_soon_days)
        if kind is None:
            continue

        items.append(
            AlertItem(
                kind=kind,
                direction=debt.direction,
                debt_id=debt.id,
                person_id=person.id,
                person_name=person.name,
                person_phone=person.phone,
                debt_title=debt.title or UNTITLED_DEBT,
                due_date=to_local_date(debt.terms.due_date) if debt.terms.due_date is not None else None,
                promised_date=to_local_date(promise_today.promised_date) if promise_today else None,
                balance=balance,
                total_due=round2(summary.total_due),
                priority=person.priority,
            )
        )

    return AlertsData(
        workspace_id=workspace_id,
        as_of_local_date=today_key,
        summary=summarize_alerts(items),
        items=sort_alerts(items)[:limit],
    )
