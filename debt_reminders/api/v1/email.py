"""GET /v1/email/preview, POST /v1/email/send-test, GET /v1/email/logs"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from debt_reminders.api.dependencies import get_digest_runner, get_request_id
from debt_reminders.api.v1.schemas import (
    DigestPreviewResponse,
    EmailLogItem,
    EmailLogsResponse,
    SendTestRequest,
    SendTestResponse,
)
from debt_reminders.domain.exceptions import InvalidDebtTermsError, WorkspaceNotFoundError
from debt_reminders.domain.models import DigestType, Direction, MessageStatus
from debt_reminders.infrastructure.database.repositories import OutboundMessageLogRepository, WorkspaceRepository
from debt_reminders.infrastructure.database.session import get_db
from debt_reminders.services.digest_runner import NO_ALERTS_SUBJECT, DigestRunner

router = APIRouter()


@router.get("/email/preview", response_model=DigestPreviewResponse)
def preview_digest(
    request: Request,
    workspace_id: str = Query(..., min_length=1),
    type: DigestType = Query(..., description="DAILY or WEEKLY"),
    direction: Optional[Direction] = Query(None),
    db: Session = Depends(get_db),
    runner: DigestRunner = Depends(get_digest_runner),
):
    """
    Render the digest that would go out now, without sending or logging it.

    Returns:
        First daily digest, or the weekly digest, or an empty "Sin alertas" preview
    """
    if type == DigestType.TEST:
        raise HTTPException(status_code=422, detail="type must be DAILY or WEEKLY")

    workspace = WorkspaceRepository(db).get(workspace_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Workspace not found")

    try:
        digests = runner.compose(type, workspace_id, workspace.name, direction)
    except InvalidDebtTermsError as e:
        logging.warning(f"Invalid debt terms: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    if not digests:
        return DigestPreviewResponse(subject=NO_ALERTS_SUBJECT, text="")

    first = digests[0]
    return DigestPreviewResponse(subject=first.subject, text=first.text, html=first.html)


@router.post("/email/send-test", response_model=SendTestResponse)
async def send_test_digest(
    request_body: SendTestRequest,
    request: Request,
    db: Session = Depends(get_db),
    runner: DigestRunner = Depends(get_digest_runner),
):
    """Send one digest to the given address; logged as TEST and never deduplicated"""
    if request_body.type == DigestType.TEST:
        raise HTTPException(status_code=422, detail="type must be DAILY or WEEKLY")

    request_id = get_request_id(request)
    try:
        result = await runner.send_test(
            request_body.workspace_id,
            request_body.to_email,
            request_body.type,
            request_body.direction,
        )

    except WorkspaceNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Workspace not found")

    except InvalidDebtTermsError as e:
        db.rollback()
        logging.warning(f"Invalid debt terms: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return SendTestResponse(
        sent=result.status == MessageStatus.SENT,
        status=result.status.value,
        reason=result.reason.value if result.reason else None,
    )


@router.get("/email/logs", response_model=EmailLogsResponse)
def get_email_logs(
    workspace_id: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Most recent outbound message log entries, newest first"""
    entries = OutboundMessageLogRepository(db).list_recent(workspace_id, limit=limit)
    return EmailLogsResponse(
        workspace_id=workspace_id,
        logs=[EmailLogItem.model_validate(entry) for entry in entries],
    )
