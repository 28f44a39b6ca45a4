"""GET /v1/reminders/suggested - Reminders ready to send for today's alerts"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from debt_reminders.api.dependencies import get_request_id
from debt_reminders.api.v1.schemas import SuggestedRemindersResponse
from debt_reminders.domain.exceptions import InvalidDebtTermsError
from debt_reminders.domain.models import Direction
from debt_reminders.infrastructure.database.session import get_db
from debt_reminders.services.alerts import get_suggested_reminders

router = APIRouter()


@router.get("/reminders/suggested", response_model=SuggestedRemindersResponse)
def list_suggested_reminders(
    request: Request,
    workspace_id: str = Query(..., min_length=1, description="Workspace identifier"),
    direction: Optional[Direction] = Query(None, description="RECEIVABLE or PAYABLE"),
    db: Session = Depends(get_db),
):
    """
    One reminder per alert, most urgent first.

    Each item carries a recommended tone and which channels (whatsapp, email,
    sms) the person's contact details allow.
    """
    try:
        reminders = get_suggested_reminders(db, workspace_id, direction)
    except InvalidDebtTermsError as e:
        logging.warning(f"Invalid debt terms: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    return SuggestedRemindersResponse.model_validate(reminders, from_attributes=True)
