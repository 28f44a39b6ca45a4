"""Pytest fixtures for testing"""

import pytest
from datetime import datetime
from decimal import Decimal
from typing import Callable, Generator, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from debt_reminders.api.main import create_app
from debt_reminders.infrastructure.database.models import (
    Base,
    Debt,
    EmailSettings,
    Member,
    Payment,
    Person,
    Promise,
    ReminderTemplate,
    Workspace,
)
from debt_reminders.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def workspace(db: Session) -> Workspace:
    """Workspace with one owner and default email settings"""
    ws = Workspace(name="Tienda Lupita")
    db.add(ws)
    db.flush()
    db.add(Member(workspace_id=ws.id, email="owner@lupita.test", role="OWNER"))
    db.add(Member(workspace_id=ws.id, email="clerk@lupita.test", role="MEMBER"))
    db.commit()
    return ws


@pytest.fixture
def add_person(db: Session, workspace: Workspace) -> Callable[..., Person]:
    def _add(name: str, priority: Optional[str] = None, deleted: bool = False, **kwargs) -> Person:
        person = Person(
            workspace_id=workspace.id,
            name=name,
            priority=priority,
            deleted_at=datetime(2024, 1, 1) if deleted else None,
            **kwargs,
        )
        db.add(person)
        db.commit()
        return person

    return _add


@pytest.fixture
def add_debt(db: Session, workspace: Workspace) -> Callable[..., Debt]:
    def _add(
        person: Person,
        amount: str,
        issued_at: datetime,
        due_date: Optional[datetime] = None,
        direction: str = "RECEIVABLE",
        paid: Optional[str] = None,
        **kwargs,
    ) -> Debt:
        debt = Debt(
            workspace_id=workspace.id,
            person_id=person.id,
            direction=direction,
            amount_original=Decimal(amount),
            issued_at=issued_at,
            due_date=due_date,
            **kwargs,
        )
        db.add(debt)
        db.flush()
        if paid is not None:
            db.add(Payment(workspace_id=workspace.id, debt_id=debt.id, amount=Decimal(paid)))
        db.commit()
        return debt

    return _add


@pytest.fixture
def add_promise(db: Session, workspace: Workspace) -> Callable[..., Promise]:
    def _add(debt: Debt, promised_date: datetime, created_at: Optional[datetime] = None) -> Promise:
        promise = Promise(workspace_id=workspace.id, debt_id=debt.id, promised_date=promised_date)
        if created_at is not None:
            promise.created_at = created_at
        db.add(promise)
        db.commit()
        return promise

    return _add


@pytest.fixture
def add_template(db: Session, workspace: Workspace) -> Callable[..., ReminderTemplate]:
    def _add(tone: str, body: str, title: Optional[str] = None, channel: str = "EMAIL") -> ReminderTemplate:
        template = ReminderTemplate(workspace_id=workspace.id, channel=channel, tone=tone, title=title, body=body)
        db.add(template)
        db.commit()
        return template

    return _add


@pytest.fixture
def set_email_settings(db: Session, workspace: Workspace) -> Callable[..., EmailSettings]:
    def _set(**kwargs) -> EmailSettings:
        row = EmailSettings(workspace_id=workspace.id, **kwargs)
        db.add(row)
        db.commit()
        return row

    return _set
