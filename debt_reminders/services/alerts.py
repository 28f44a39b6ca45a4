"""Workspace alert queries shared by the HTTP layer and the digest runners"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from debt_reminders.config import settings
from debt_reminders.domain.alerts import classify_alerts, promises_due_today
from debt_reminders.domain.ledger import compute_debt
from debt_reminders.domain.models import (
    AlertKind,
    AlertsData,
    DashboardTotals,
    DebtComputed,
    DebtStatus,
    Direction,
    SuggestedReminders,
)
from debt_reminders.domain.reminders import suggest_reminders, sum_open_totals
from debt_reminders.infrastructure.database.models import Debt
from debt_reminders.infrastructure.database.repositories import (
    DebtRepository,
    PersonRepository,
    PromiseRepository,
    to_person,
    to_record,
    to_terms,
)
from debt_reminders.utils.date_utils import local_date_key

# "Collect today" ranks due-today above promises, unlike the alert feed
TODAY_ORDER = {
    AlertKind.OVERDUE: 0,
    AlertKind.DUE_TODAY: 1,
    AlertKind.PROMISE_TODAY: 2,
}


@dataclass
class DebtView:
    """Persisted debt row with its ledger figures"""

    debt: Debt
    computed: DebtComputed


@dataclass
class TodayItem:
    view: DebtView
    reason: AlertKind


def get_alerts_data(
    db: Session,
    workspace_id: str,
    direction: Optional[Direction] = None,
    as_of: Optional[datetime] = None,
) -> AlertsData:
    """Classify every open debt of a workspace into alerts"""
    debt_repo = DebtRepository(db)
    debts = debt_repo.list_open(workspace_id, direction)
    debt_ids = [debt.id for debt in debts]

    return classify_alerts(
        workspace_id=workspace_id,
        debts=[to_record(debt) for debt in debts],
        persons={debt.person_id: to_person(debt.person) for debt in debts},
        payment_sums=debt_repo.payment_sums(workspace_id, debt_ids),
        promises=PromiseRepository(db).list_for_debts(workspace_id, debt_ids),
        as_of=as_of,
        limit=settings.alerts_limit,
        due_soon_days=settings.due_soon_days,
    )


def list_debt_views(
    db: Session,
    workspace_id: str,
    direction: Optional[Direction] = None,
    as_of: Optional[datetime] = None,
) -> List[DebtView]:
    debt_repo = DebtRepository(db)
    debts = debt_repo.list_open(workspace_id, direction)
    sums = debt_repo.payment_sums(workspace_id, [debt.id for debt in debts])
    return [
        DebtView(debt=debt, computed=compute_debt(to_terms(debt), sums.get(debt.id, Decimal("0")), as_of))
        for debt in debts
    ]


def get_debt_view(
    db: Session,
    workspace_id: str,
    debt_id: str,
    as_of: Optional[datetime] = None,
) -> Optional[DebtView]:
    debt_repo = DebtRepository(db)
    debt = debt_repo.get(workspace_id, debt_id)
    if debt is None:
        return None
    sums = debt_repo.payment_sums(workspace_id, [debt.id])
    return DebtView(debt=debt, computed=compute_debt(to_terms(debt), sums.get(debt.id, Decimal("0")), as_of))


def get_collect_today(
    db: Session,
    workspace_id: str,
    direction: Direction,
    as_of: Optional[datetime] = None,
) -> List[TodayItem]:
    """Open debts to chase today: overdue, due today, or promised for today"""
    as_of = as_of or datetime.now()
    today_key = local_date_key(as_of)
    views = list_debt_views(db, workspace_id, direction, as_of)
    promised = promises_due_today(
        PromiseRepository(db).list_for_debts(workspace_id, [view.debt.id for view in views]),
        today_key,
    )

    items = []
    for view in views:
        if view.computed.balance <= 0:
            continue
        due_date = view.debt.due_date
        if view.computed.status == DebtStatus.OVERDUE:
            reason = AlertKind.OVERDUE
        elif due_date is not None and local_date_key(due_date) == today_key:
            reason = AlertKind.DUE_TODAY
        elif view.debt.id in promised:
            reason = AlertKind.PROMISE_TODAY
        else:
            continue
        items.append(TodayItem(view=view, reason=reason))

    return sorted(items, key=lambda item: TODAY_ORDER[item.reason])


def get_suggested_reminders(
    db: Session,
    workspace_id: str,
    direction: Optional[Direction] = None,
    as_of: Optional[datetime] = None,
) -> SuggestedReminders:
    """Alert feed turned into reminders, with each person's current contact details"""
    alerts = get_alerts_data(db, workspace_id, direction, as_of=as_of)
    persons = PersonRepository(db).contacts(workspace_id, [item.person_id for item in alerts.items])
    return suggest_reminders(alerts, persons)


def get_dashboard_totals(
    db: Session,
    workspace_id: str,
    as_of: Optional[datetime] = None,
) -> DashboardTotals:
    debt_repo = DebtRepository(db)
    debts = debt_repo.list_open(workspace_id)
    return sum_open_totals(
        [to_record(debt) for debt in debts],
        debt_repo.payment_sums(workspace_id, [debt.id for debt in debts]),
        as_of,
    )
