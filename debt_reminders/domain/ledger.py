"""Ledger calculator - balance, interest and payment suggestions for a debt"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Union

from debt_reminders.domain.exceptions import InvalidDebtTermsError
from debt_reminders.domain.installments import generate_installment_schedule
from debt_reminders.domain.models import DebtComputed, DebtStatus, DebtSummary, DebtTerms
from debt_reminders.utils.date_utils import add_months, diff_months, local_date_key, to_local_date

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0")
SUPPORTED_INTEREST_PERIODS = {"monthly"}

# Quick-pay heuristic when the debt has no minimum suggested payment
SUGGESTION_FLOOR = Decimal("5")
SUGGESTION_CAP = Decimal("50")
SUGGESTION_RATIO = Decimal("0.1")
SUGGESTION_ANCHORS = (Decimal("10"), Decimal("20"), Decimal("50"))


def to_decimal(value: Optional[Number]) -> Decimal:
    """Coerce ORM / JSON numbers to Decimal; None counts as zero"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging binary noise into the ledger
    return Decimal(str(value))


def round2(value: Number) -> Decimal:
    """Round half away from zero to cents"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def validate_terms(terms: DebtTerms, payments_sum: Number) -> None:
    """
    Reject terms that would make the ledger display nonsense.

    Raises:
        InvalidDebtTermsError: On negative amounts, bad split count or unknown interest period
    """
    if to_decimal(terms.amount_original) < 0:
        raise InvalidDebtTermsError(f"Debt {terms.id}: amount_original cannot be negative")
    if to_decimal(payments_sum) < 0:
        raise InvalidDebtTermsError(f"Debt {terms.id}: payments_sum cannot be negative")
    if terms.split_count is not None and terms.split_count < 0:
        raise InvalidDebtTermsError(f"Debt {terms.id}: split_count cannot be negative")
    if terms.min_suggested_payment is not None and to_decimal(terms.min_suggested_payment) < 0:
        raise InvalidDebtTermsError(f"Debt {terms.id}: min_suggested_payment cannot be negative")
    if terms.has_interest and terms.interest_rate_pct is not None:
        if to_decimal(terms.interest_rate_pct) < 0:
            raise InvalidDebtTermsError(f"Debt {terms.id}: interest_rate_pct cannot be negative")
        period = terms.interest_period or "monthly"
        if period not in SUPPORTED_INTEREST_PERIODS:
            raise InvalidDebtTermsError(f"Debt {terms.id}: unsupported interest period '{period}'")


def compute_debt_summary(
    terms: DebtTerms,
    payments_sum: Number,
    as_of: Optional[datetime] = None,
) -> DebtSummary:
    """
    Unrounded principal, interest, total due and balance.

    Interest is simple and whole-month: principal_outstanding x rate% x full
    months elapsed since issue. Partial months accrue nothing. A rate on a
    debt without has_interest is ignored.
    """
    validate_terms(terms, payments_sum)
    as_of = as_of or datetime.now()

    amount_original = to_decimal(terms.amount_original)
    principal_outstanding = max(amount_original - to_decimal(payments_sum), ZERO)

    applies_interest = terms.has_interest and terms.interest_rate_pct is not None
    interest_accrued = ZERO
    if applies_interest:
        months_elapsed = diff_months(terms.issued_at, as_of)
        rate = to_decimal(terms.interest_rate_pct) / 100
        interest_accrued = principal_outstanding * rate * months_elapsed

    total_due = principal_outstanding + interest_accrued if applies_interest else amount_original
    balance = total_due if applies_interest else principal_outstanding

    return DebtSummary(
        principal_outstanding=principal_outstanding,
        interest_accrued=interest_accrued,
        total_due=total_due,
        balance=balance,
    )


def compute_debt_balance(
    terms: DebtTerms,
    payments_sum: Number,
    as_of: Optional[datetime] = None,
) -> Decimal:
    """Balance rounded to cents"""
    return round2(compute_debt_summary(terms, payments_sum, as_of).balance)


def compute_debt_status(
    balance: Decimal,
    due_date: Optional[Union[date, datetime]],
    as_of: Optional[datetime] = None,
) -> DebtStatus:
    """PAID / OVERDUE / PENDING from an already rounded balance"""
    if balance <= 0:
        return DebtStatus.PAID
    if due_date is not None:
        today_key = local_date_key(as_of or datetime.now())
        if local_date_key(due_date) < today_key:
            return DebtStatus.OVERDUE
    return DebtStatus.PENDING


def suggest_payments(balance: Decimal, min_suggested_payment: Optional[Number]) -> List[Decimal]:
    """Distinct quick-pay amounts, ascending, none above the balance"""
    if balance <= 0:
        return []

    if min_suggested_payment is not None:
        minimum = round2(min_suggested_payment)
        candidates = [minimum, round2(minimum * 2), round2(minimum * 3)]
    else:
        base = round2(min(SUGGESTION_CAP, max(SUGGESTION_FLOOR, balance * SUGGESTION_RATIO)))
        candidates = [base, *SUGGESTION_ANCHORS]

    return sorted({round2(c) for c in candidates if 0 < c <= balance})


def compute_debt(
    terms: DebtTerms,
    payments_sum: Number,
    as_of: Optional[datetime] = None,
) -> DebtComputed:
    """
    Main entry point: every figure shown for a debt.

    Money is rounded to cents here and only here. The schedule is anchored to
    the due date, or one month after issue when there is none.
    """
    as_of = as_of or datetime.now()
    summary = compute_debt_summary(terms, payments_sum, as_of)

    balance = max(round2(summary.balance), ZERO)
    total_due = round2(summary.total_due)
    status = compute_debt_status(balance, terms.due_date, as_of)

    schedule = None
    split_each = None
    if terms.split_count:
        first_due_date = terms.due_date if terms.due_date is not None else add_months(terms.issued_at, 1)
        schedule = generate_installment_schedule(total_due, terms.split_count, to_local_date(first_due_date))
        split_each = round2(total_due / terms.split_count)

    return DebtComputed(
        principal_outstanding=round2(summary.principal_outstanding),
        interest_accrued=round2(summary.interest_accrued),
        total_due=total_due,
        balance=balance,
        status=status,
        suggested_payments=suggest_payments(balance, terms.min_suggested_payment),
        schedule_suggested=schedule,
        split_each=split_each,
    )
