"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from debt_reminders.domain.models import (
    AlertKind,
    DebtStatus,
    DigestType,
    Direction,
    Priority,
    Tone,
)


class AlertItemSchema(BaseModel):
    """Single alert in the workspace feed"""

    model_config = ConfigDict(from_attributes=True)

    kind: AlertKind
    direction: Direction
    debt_id: str
    person_id: str
    person_name: str
    person_phone: Optional[str] = None
    debt_title: str
    due_date: Optional[date] = None
    promised_date: Optional[date] = None
    balance: Decimal
    total_due: Decimal
    priority: Optional[Priority] = None


class AlertCountsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    overdue_count: int
    due_today_count: int
    due_soon_count: int
    high_priority_count: int
    promise_today_count: int


class AlertsSummarySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    receivable: AlertCountsSchema
    payable: AlertCountsSchema


class AlertsResponse(BaseModel):
    """Response for GET /v1/alerts"""

    model_config = ConfigDict(from_attributes=True)

    workspace_id: str
    as_of_local_date: str
    summary: AlertsSummarySchema
    items: List[AlertItemSchema]


class InstallmentSchema(BaseModel):
    """Single installment in a suggested schedule"""

    model_config = ConfigDict(from_attributes=True)

    installment_number: int
    due_date: date
    amount: Decimal


class PersonSummarySchema(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None


class DebtResponse(BaseModel):
    """Persisted debt merged with its ledger figures"""

    id: str
    workspace_id: str
    person_id: str
    direction: Direction
    title: Optional[str] = None
    description: Optional[str] = None
    currency: str
    amount_original: Decimal
    principal_outstanding: Decimal
    interest_accrued: Decimal
    total_due: Decimal
    balance: Decimal
    status: DebtStatus
    suggested_payments: List[Decimal]
    schedule_suggested: Optional[List[InstallmentSchema]] = None
    split_count: Optional[int] = None
    split_each: Optional[Decimal] = None
    due_date: Optional[datetime] = None
    issued_at: datetime
    has_interest: bool
    interest_rate_pct: Optional[Decimal] = None
    interest_period: Optional[str] = None
    min_suggested_payment: Optional[Decimal] = None
    created_at: datetime
    person: PersonSummarySchema


class TodayItemSchema(BaseModel):
    """Debt to collect today and why"""

    reason: AlertKind
    debt: DebtResponse


class DigestPreviewResponse(BaseModel):
    """Response for GET /v1/email/preview"""

    subject: str
    text: str
    html: Optional[str] = None


class SendTestRequest(BaseModel):
    """Request body for POST /v1/email/send-test"""

    workspace_id: str = Field(..., min_length=1)
    to_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    type: DigestType = Field(..., description="DAILY or WEEKLY")
    direction: Optional[Direction] = None


class SendTestResponse(BaseModel):
    sent: bool
    status: str
    reason: Optional[str] = None


class EmailLogItem(BaseModel):
    """Single outbound message log entry"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    to: str
    subject: str
    body_preview: str
    status: str
    type: str
    direction: str
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime


class EmailLogsResponse(BaseModel):
    workspace_id: str
    logs: List[EmailLogItem]


class CronRunRequest(BaseModel):
    """Request body for POST /v1/cron/email/{daily,weekly}"""

    workspace_id: Optional[str] = Field(default=None, min_length=1)
    direction: Optional[Direction] = None
    to_email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CronRunResponse(BaseModel):
    processed_workspaces: int
    sent: int
    skipped: int
    failed: int
    reason_counts: Dict[str, int]


class ReminderChannelsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    whatsapp: bool
    email: bool
    sms: bool


class SuggestedReminderSchema(BaseModel):
    """Alert with a recommended tone and the channels it can go out on"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: AlertKind
    direction: Direction
    debt_id: str
    person_id: str
    person_name: str
    person_phone: Optional[str] = None
    debt_title: str
    balance: Decimal
    due_date: Optional[date] = None
    promised_date: Optional[date] = None
    recommended_tone: Tone
    channels: ReminderChannelsSchema


class SuggestedRemindersResponse(BaseModel):
    """Response for GET /v1/reminders/suggested"""

    model_config = ConfigDict(from_attributes=True)

    workspace_id: str
    as_of_local_date: str
    items: List[SuggestedReminderSchema]


class OpenTotalsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_open: Decimal
    overdue: Decimal
    due_today: Decimal


class DashboardTotalsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    receivable: OpenTotalsSchema
    payable: OpenTotalsSchema


class DashboardResponse(BaseModel):
    """Response for GET /v1/dashboard"""

    workspace_id: str
    totals: DashboardTotalsSchema
