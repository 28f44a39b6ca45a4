"""POST /v1/cron/email/daily and /v1/cron/email/weekly - Scheduled digest runs"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from debt_reminders.api.dependencies import get_digest_runner, get_request_id
from debt_reminders.api.v1.schemas import CronRunRequest, CronRunResponse
from debt_reminders.config import settings
from debt_reminders.domain.models import DigestType, RunReport
from debt_reminders.infrastructure.database.session import get_db
from debt_reminders.services.digest_runner import DigestRunner

router = APIRouter()


def require_cron_secret(x_cron_secret: Optional[str] = Header(None)) -> None:
    """Reject callers that do not present the shared cron secret"""
    if not x_cron_secret or not secrets.compare_digest(x_cron_secret, settings.cron_secret):
        raise HTTPException(status_code=401, detail="Invalid cron secret")


def to_response(report: RunReport) -> CronRunResponse:
    return CronRunResponse(
        processed_workspaces=report.processed_workspaces,
        sent=report.sent,
        skipped=report.skipped,
        failed=report.failed,
        reason_counts={reason.value: count for reason, count in report.reason_counts.items()},
    )


async def run_digest(
    digest_type: DigestType,
    request_body: Optional[CronRunRequest],
    request: Request,
    db: Session,
    runner: DigestRunner,
) -> CronRunResponse:
    """
    Run one digest type and report totals.

    Flow:
    1. Resolve target workspaces (one, or all)
    2. Per workspace: settings switch, recipients, compose
    3. Per recipient: dedup check, send, log outcome

    Malformed debts fail their own workspace inside the report, not the request.
    """
    body = request_body or CronRunRequest()
    request_id = get_request_id(request)
    run = runner.run_daily if digest_type == DigestType.DAILY else runner.run_weekly

    try:
        report = await run(body.workspace_id, body.direction, body.to_email)

    except Exception as e:
        db.rollback()
        logging.error(f"Digest run failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return to_response(report)


@router.post("/cron/email/daily", response_model=CronRunResponse, dependencies=[Depends(require_cron_secret)])
async def run_daily_digest(
    request: Request,
    request_body: Optional[CronRunRequest] = None,
    db: Session = Depends(get_db),
    runner: DigestRunner = Depends(get_digest_runner),
):
    """Send today's per-person reminder digests"""
    return await run_digest(DigestType.DAILY, request_body, request, db, runner)


@router.post("/cron/email/weekly", response_model=CronRunResponse, dependencies=[Depends(require_cron_secret)])
async def run_weekly_digest(
    request: Request,
    request_body: Optional[CronRunRequest] = None,
    db: Session = Depends(get_db),
    runner: DigestRunner = Depends(get_digest_runner),
):
    """Send this ISO week's workspace summary"""
    return await run_digest(DigestType.WEEKLY, request_body, request, db, runner)
