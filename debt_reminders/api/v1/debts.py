"""GET /v1/debts, /v1/debts/{debt_id} and /v1/today - Debts with ledger figures"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from debt_reminders.api.dependencies import get_request_id
from debt_reminders.api.v1.schemas import DebtResponse, InstallmentSchema, PersonSummarySchema, TodayItemSchema
from debt_reminders.domain.exceptions import InvalidDebtTermsError
from debt_reminders.domain.models import Direction
from debt_reminders.infrastructure.database.session import get_db
from debt_reminders.services.alerts import DebtView, get_collect_today, get_debt_view, list_debt_views

router = APIRouter()


def to_debt_response(view: DebtView) -> DebtResponse:
    debt, computed = view.debt, view.computed
    schedule = None
    if computed.schedule_suggested is not None:
        schedule = [
            InstallmentSchema(installment_number=i.installment_number, due_date=i.due_date, amount=i.amount)
            for i in computed.schedule_suggested
        ]

    return DebtResponse(
        id=debt.id,
        workspace_id=debt.workspace_id,
        person_id=debt.person_id,
        direction=Direction(debt.direction),
        title=debt.title,
        description=debt.description,
        currency=debt.currency,
        amount_original=debt.amount_original,
        principal_outstanding=computed.principal_outstanding,
        interest_accrued=computed.interest_accrued,
        total_due=computed.total_due,
        balance=computed.balance,
        status=computed.status,
        suggested_payments=computed.suggested_payments,
        schedule_suggested=schedule,
        split_count=debt.split_count,
        split_each=computed.split_each,
        due_date=debt.due_date,
        issued_at=debt.issued_at,
        has_interest=debt.has_interest,
        interest_rate_pct=debt.interest_rate_pct,
        interest_period=debt.interest_period,
        min_suggested_payment=debt.min_suggested_payment,
        created_at=debt.created_at,
        person=PersonSummarySchema(id=debt.person.id, name=debt.person.name, phone=debt.person.phone),
    )


@router.get("/debts", response_model=List[DebtResponse])
def list_debts(
    request: Request,
    workspace_id: str = Query(..., min_length=1),
    direction: Optional[Direction] = Query(None),
    db: Session = Depends(get_db),
):
    """List open debts of a workspace with balances computed as of now"""
    try:
        views = list_debt_views(db, workspace_id, direction)
    except InvalidDebtTermsError as e:
        logging.warning(f"Invalid debt terms: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    return [to_debt_response(view) for view in views]


@router.get("/debts/{debt_id}", response_model=DebtResponse)
def get_debt(
    debt_id: str,
    request: Request,
    workspace_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """
    Retrieve one debt with balance, interest, payment suggestions and schedule.

    Returns:
        Debt row merged with its ledger figures
    """
    try:
        view = get_debt_view(db, workspace_id, debt_id)
    except InvalidDebtTermsError as e:
        logging.warning(f"Invalid debt terms: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    if view is None:
        raise HTTPException(status_code=404, detail="Debt not found")

    return to_debt_response(view)


@router.get("/today", response_model=List[TodayItemSchema])
def get_today(
    request: Request,
    workspace_id: str = Query(..., min_length=1),
    direction: Direction = Query(..., description="RECEIVABLE or PAYABLE"),
    db: Session = Depends(get_db),
):
    """Debts to chase today: overdue first, then due today, then promised today"""
    try:
        items = get_collect_today(db, workspace_id, direction)
    except InvalidDebtTermsError as e:
        logging.warning(f"Invalid debt terms: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    return [TodayItemSchema(reason=item.reason, debt=to_debt_response(item.view)) for item in items]
