"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Union

DateLike = Union[date, datetime]


class Direction(str, Enum):
    """Who owes whom, seen from the workspace"""

    RECEIVABLE = "RECEIVABLE"  # owed to the workspace
    PAYABLE = "PAYABLE"  # owed by the workspace


class OutboundDirection(str, Enum):
    """Direction scope recorded on outbound messages"""

    RECEIVABLE = "RECEIVABLE"
    PAYABLE = "PAYABLE"
    ALL = "ALL"

    @classmethod
    def from_direction(cls, direction: Optional[Direction]) -> "OutboundDirection":
        return cls(direction.value) if direction else cls.ALL


class DebtStatus(str, Enum):
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    PENDING = "PENDING"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AlertKind(str, Enum):
    OVERDUE = "OVERDUE"
    PROMISE_TODAY = "PROMISE_TODAY"
    DUE_TODAY = "DUE_TODAY"
    DUE_SOON = "DUE_SOON"
    HIGH_PRIORITY = "HIGH_PRIORITY"


# Sort order, most urgent first
KIND_PRIORITY: Dict[AlertKind, int] = {
    AlertKind.OVERDUE: 0,
    AlertKind.PROMISE_TODAY: 1,
    AlertKind.DUE_TODAY: 2,
    AlertKind.DUE_SOON: 3,
    AlertKind.HIGH_PRIORITY: 4,
}


class Tone(str, Enum):
    SOFT = "soft"
    NORMAL = "normal"
    STRONG = "strong"


class Channel(str, Enum):
    EMAIL = "EMAIL"
    WHATSAPP = "WHATSAPP"
    SMS = "SMS"


class DigestType(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    TEST = "TEST"


class MessageStatus(str, Enum):
    SENT = "SENT"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class OutcomeReason(str, Enum):
    """Closed set of reasons a digest was skipped or failed"""

    DISABLED = "DISABLED"
    NO_RECIPIENTS = "NO_RECIPIENTS"
    NO_ITEMS = "NO_ITEMS"
    ALREADY_SENT = "ALREADY_SENT"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    INVALID_TERMS = "INVALID_TERMS"


class RecipientMode(str, Enum):
    OWNERS = "OWNERS"
    CUSTOM = "CUSTOM"


@dataclass(frozen=True)
class DebtTerms:
    """Terms of a debt as agreed when it was registered"""

    id: str
    amount_original: Decimal
    issued_at: DateLike
    has_interest: bool = False
    interest_rate_pct: Optional[Decimal] = None
    interest_period: Optional[str] = "monthly"
    due_date: Optional[DateLike] = None
    min_suggested_payment: Optional[Decimal] = None
    split_count: Optional[int] = None


@dataclass
class ScheduleInstallment:
    """Single payment in a suggested schedule"""

    installment_number: int
    due_date: date
    amount: Decimal


@dataclass
class DebtSummary:
    """Unrounded ledger figures, for internal use"""

    principal_outstanding: Decimal
    interest_accrued: Decimal
    total_due: Decimal
    balance: Decimal


@dataclass
class DebtComputed:
    """Ledger figures exposed to callers, rounded to cents"""

    principal_outstanding: Decimal
    interest_accrued: Decimal
    total_due: Decimal
    balance: Decimal
    status: DebtStatus
    suggested_payments: List[Decimal]
    schedule_suggested: Optional[List[ScheduleInstallment]]
    split_each: Optional[Decimal]


@dataclass(frozen=True)
class PersonRecord:
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    priority: Optional[Priority] = None


@dataclass(frozen=True)
class DebtRecord:
    """Persisted debt row as read by the classifier"""

    terms: DebtTerms
    person_id: str
    direction: Direction
    title: Optional[str] = None

    @property
    def id(self) -> str:
        return self.terms.id


@dataclass(frozen=True)
class PromiseRecord:
    debt_id: str
    promised_date: DateLike
    created_at: datetime


@dataclass
class AlertItem:
    kind: AlertKind
    direction: Direction
    debt_id: str
    person_id: str
    person_name: str
    person_phone: Optional[str]
    debt_title: str
    due_date: Optional[date]
    promised_date: Optional[date]
    balance: Decimal
    total_due: Decimal
    priority: Optional[Priority]


@dataclass
class AlertCounts:
    overdue_count: int = 0
    due_today_count: int = 0
    due_soon_count: int = 0
    high_priority_count: int = 0
    promise_today_count: int = 0

    def bump(self, kind: AlertKind) -> None:
        attr = {
            AlertKind.OVERDUE: "overdue_count",
            AlertKind.DUE_TODAY: "due_today_count",
            AlertKind.DUE_SOON: "due_soon_count",
            AlertKind.HIGH_PRIORITY: "high_priority_count",
            AlertKind.PROMISE_TODAY: "promise_today_count",
        }[kind]
        setattr(self, attr, getattr(self, attr) + 1)


@dataclass
class AlertsSummary:
    receivable: AlertCounts = field(default_factory=AlertCounts)
    payable: AlertCounts = field(default_factory=AlertCounts)

    def for_direction(self, direction: Direction) -> AlertCounts:
        return self.receivable if direction == Direction.RECEIVABLE else self.payable


@dataclass
class AlertsData:
    workspace_id: str
    as_of_local_date: str
    summary: AlertsSummary
    items: List[AlertItem]


@dataclass(frozen=True)
class ReminderChannels:
    whatsapp: bool
    email: bool
    sms: bool


@dataclass
class SuggestedReminder:
    """Alert turned into a ready-to-send reminder with a recommended tone"""

    id: str
    kind: AlertKind
    direction: Direction
    debt_id: str
    person_id: str
    person_name: str
    person_phone: Optional[str]
    debt_title: str
    balance: Decimal
    due_date: Optional[date]
    promised_date: Optional[date]
    recommended_tone: Tone
    channels: ReminderChannels


@dataclass
class SuggestedReminders:
    workspace_id: str
    as_of_local_date: str
    items: List[SuggestedReminder]


@dataclass
class OpenTotals:
    total_open: Decimal = Decimal("0.00")
    overdue: Decimal = Decimal("0.00")
    due_today: Decimal = Decimal("0.00")


@dataclass
class DashboardTotals:
    """Money still open per direction, with the overdue and due-today shares"""

    receivable: OpenTotals = field(default_factory=OpenTotals)
    payable: OpenTotals = field(default_factory=OpenTotals)

    def for_direction(self, direction: Direction) -> OpenTotals:
        return self.receivable if direction == Direction.RECEIVABLE else self.payable


@dataclass(frozen=True)
class ReminderTemplate:
    channel: Channel
    tone: Tone
    body: str
    title: Optional[str] = None


@dataclass
class DailyDigest:
    """Reminder digest covering every open alert of one person"""

    person_id: str
    person_name: str
    tone: Tone
    subject: str
    text: str
    html: Optional[str] = None


@dataclass
class WeeklyDigest:
    subject: str
    text: str
    html: Optional[str] = None


@dataclass
class SendResult:
    """Outcome of one delivery attempt"""

    status: MessageStatus
    reason: Optional[OutcomeReason] = None
    error_message: Optional[str] = None


@dataclass
class RunReport:
    """Totals for one digest run across workspaces"""

    processed_workspaces: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    reason_counts: Dict[OutcomeReason, int] = field(default_factory=dict)

    def record(self, status: MessageStatus, reason: Optional[OutcomeReason] = None) -> None:
        if status == MessageStatus.SENT:
            self.sent += 1
        elif status == MessageStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
        if reason is not None:
            self.reason_counts[reason] = self.reason_counts.get(reason, 0) + 1
