"""SQLAlchemy ORM models for workspaces, debts and the outbound message log"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class Workspace(Base):
    """Business or individual whose debts are tracked"""

    __tablename__ = "workspace"

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    members = relationship("Member", back_populates="workspace", cascade="all, delete-orphan")


class Member(Base):
    """Workspace user; owners receive digests in OWNERS recipient mode"""

    __tablename__ = "member"

    id = Column(Text, primary_key=True, default=new_id)
    workspace_id = Column(Text, ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="MEMBER")  # OWNER | ADMIN | MEMBER

    workspace = relationship("Workspace", back_populates="members")


class Person(Base):
    """Counterparty of one or more debts"""

    __tablename__ = "person"

    id = Column(Text, primary_key=True, default=new_id)
    workspace_id = Column(Text, ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    priority = Column(Text, nullable=True)  # LOW | MEDIUM | HIGH
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)

    debts = relationship("Debt", back_populates="person")


class Debt(Base):
    """Debt terms; balances are derived at read time, never stored"""

    __tablename__ = "debt"

    id = Column(Text, primary_key=True, default=new_id)
    workspace_id = Column(Text, ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    person_id = Column(Text, ForeignKey("person.id"), nullable=False, index=True)
    direction = Column(Text, nullable=False)  # RECEIVABLE | PAYABLE
    title = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    currency = Column(Text, nullable=False, default="USD")
    amount_original = Column(Numeric(12, 2), nullable=False)
    has_interest = Column(Boolean, nullable=False, default=False)
    interest_rate_pct = Column(Numeric(7, 4), nullable=True)
    interest_period = Column(Text, nullable=True, default="monthly")
    issued_at = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=True)
    min_suggested_payment = Column(Numeric(12, 2), nullable=True)
    split_count = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)

    person = relationship("Person", back_populates="debts")
    payments = relationship("Payment", back_populates="debt", cascade="all, delete-orphan")
    promises = relationship("Promise", back_populates="debt", cascade="all, delete-orphan")


class Payment(Base):
    """Payment recorded against a debt"""

    __tablename__ = "payment"

    id = Column(Text, primary_key=True, default=new_id)
    workspace_id = Column(Text, ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    debt_id = Column(Text, ForeignKey("debt.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_at = Column(DateTime, nullable=False, server_default=func.now())
    note = Column(Text, nullable=True)

    debt = relationship("Debt", back_populates="payments")


class Promise(Base):
    """Promise-to-pay made by the counterparty"""

    __tablename__ = "promise"

    id = Column(Text, primary_key=True, default=new_id)
    workspace_id = Column(Text, ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    debt_id = Column(Text, ForeignKey("debt.id", ondelete="CASCADE"), nullable=False, index=True)
    promised_date = Column(DateTime, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    debt = relationship("Debt", back_populates="promises")


class ReminderTemplate(Base):
    """Per-workspace message copy for a channel and tone"""

    __tablename__ = "reminder_template"
    __table_args__ = (UniqueConstraint("workspace_id", "channel", "tone", name="uq_template_channel_tone"),)

    id = Column(Text, primary_key=True, default=new_id)
    workspace_id = Column(Text, ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False)
    channel = Column(Text, nullable=False)  # EMAIL | WHATSAPP | SMS
    tone = Column(Text, nullable=False)  # soft | normal | strong
    title = Column(Text, nullable=True)
    body = Column(Text, nullable=False)


class EmailSettings(Base):
    """Digest switches and recipients for a workspace"""

    __tablename__ = "email_settings"

    id = Column(Text, primary_key=True, default=new_id)
    workspace_id = Column(Text, ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, unique=True)
    daily_enabled = Column(Boolean, nullable=False, default=True)
    weekly_enabled = Column(Boolean, nullable=False, default=True)
    to_mode = Column(Text, nullable=False, default="OWNERS")  # OWNERS | CUSTOM
    to_emails = Column(JSON, nullable=True)


class OutboundMessageLog(Base):
    """Append-only record of every digest attempt; source of truth for dedup"""

    __tablename__ = "outbound_message_log"

    id = Column(Text, primary_key=True, default=new_id)
    workspace_id = Column(Text, ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    channel = Column(Text, nullable=False, default="EMAIL")
    to = Column(Text, nullable=False, default="", index=True)
    subject = Column(Text, nullable=False, default="")
    body_text = Column(Text, nullable=False, default="")
    body_html = Column(Text, nullable=True)
    body_preview = Column(Text, nullable=False, default="")
    status = Column(Text, nullable=False)  # SENT | SKIPPED | FAILED
    type = Column(Text, nullable=False)  # DAILY | WEEKLY | TEST
    direction = Column(Text, nullable=False, default="ALL")  # RECEIVABLE | PAYABLE | ALL
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
