"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from debt_reminders.infrastructure.clients.mailer import MailerClient
from debt_reminders.infrastructure.database.session import get_db
from debt_reminders.services.digest_runner import DigestRunner


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_mailer_client() -> MailerClient:
    """Provide mail relay client instance"""
    return MailerClient()


def get_digest_runner(
    db: Session = Depends(get_db),
    mailer: MailerClient = Depends(get_mailer_client),
) -> DigestRunner:
    """Provide a digest runner bound to the request's session"""
    return DigestRunner(db, mailer)
