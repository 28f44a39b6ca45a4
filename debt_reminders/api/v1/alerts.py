"""GET /v1/alerts - Time-sensitive alerts for a workspace"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from debt_reminders.api.dependencies import get_request_id
from debt_reminders.api.v1.schemas import AlertsResponse
from debt_reminders.domain.exceptions import InvalidDebtTermsError
from debt_reminders.domain.models import Direction
from debt_reminders.infrastructure.database.session import get_db
from debt_reminders.infrastructure.observability.metrics import record_alerts
from debt_reminders.services.alerts import get_alerts_data

router = APIRouter()


@router.get("/alerts", response_model=AlertsResponse)
def get_alerts(
    request: Request,
    workspace_id: str = Query(..., min_length=1, description="Workspace identifier"),
    direction: Optional[Direction] = Query(None, description="RECEIVABLE or PAYABLE"),
    db: Session = Depends(get_db),
):
    """
    Classify every open debt into at most one alert.

    Returns:
        Per-direction counts plus up to 50 items, most urgent first
    """
    try:
        alerts = get_alerts_data(db, workspace_id, direction)
    except InvalidDebtTermsError as e:
        logging.warning(f"Invalid debt terms: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    record_alerts(alerts)
    return AlertsResponse.model_validate(alerts, from_attributes=True)
