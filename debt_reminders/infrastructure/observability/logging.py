"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from debt_reminders.config import settings
from debt_reminders.domain.models import DigestType, MessageStatus, OutcomeReason, RunReport


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_digest_outcome(
    workspace_id: str,
    digest_type: DigestType,
    recipient: str,
    status: MessageStatus,
    reason: Optional[OutcomeReason] = None,
) -> None:
    """Log one recipient outcome of a digest run"""
    logging.info(
        "Digest outcome",
        extra={
            "workspace_id": workspace_id,
            "step": "digest_outcome",
            "digest_type": digest_type.value,
            "recipient": recipient,
            "status": status.value,
            "reason": reason.value if reason else None,
        },
    )


def log_digest_run(digest_type: DigestType, report: RunReport, duration_ms: float) -> None:
    """Log batch totals once a digest run finishes"""
    logging.info(
        "Digest run completed",
        extra={
            "step": "digest_run_complete",
            "digest_type": digest_type.value,
            "processed_workspaces": report.processed_workspaces,
            "sent": report.sent,
            "skipped": report.skipped,
            "failed": report.failed,
            "reason_counts": {reason.value: count for reason, count in report.reason_counts.items()},
            "duration_ms": duration_ms,
        },
    )
