"""GET /v1/dashboard - Open balance totals for a workspace"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from debt_reminders.api.dependencies import get_request_id
from debt_reminders.api.v1.schemas import DashboardResponse, DashboardTotalsSchema
from debt_reminders.domain.exceptions import InvalidDebtTermsError
from debt_reminders.infrastructure.database.session import get_db
from debt_reminders.services.alerts import get_dashboard_totals

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    request: Request,
    workspace_id: str = Query(..., min_length=1, description="Workspace identifier"),
    db: Session = Depends(get_db),
):
    """Open, overdue and due-today balance per direction"""
    try:
        totals = get_dashboard_totals(db, workspace_id)
    except InvalidDebtTermsError as e:
        logging.warning(f"Invalid debt terms: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    return DashboardResponse(
        workspace_id=workspace_id,
        totals=DashboardTotalsSchema.model_validate(totals, from_attributes=True),
    )
