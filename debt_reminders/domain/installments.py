"""Suggested installment schedule for splitting a debt into monthly payments"""

from datetime import date
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import List

from debt_reminders.domain.exceptions import InvalidDebtTermsError
from debt_reminders.domain.models import ScheduleInstallment
from debt_reminders.utils.date_utils import add_months

CENT = Decimal("0.01")


def generate_installment_schedule(
    total_due: Decimal,
    split_count: int,
    first_due_date: date,
) -> List[ScheduleInstallment]:
    """
    Split the amount due into equal monthly installments.

    Requirements:
    - Every installment is round2(total / count)
    - One calendar month apart, counted from the first due date
    - Last installment absorbs rounding remainder so the sum is exactly the total
    - No installment is below one cent: the count is capped at the cents in the total
      and the base rounds down when rounding up would leave the last one non-positive

    Args:
        total_due: Amount to split (rounded to cents before splitting)
        split_count: Number of installments, at least 1
        first_due_date: Due date of installment #1

    Returns:
        List of ScheduleInstallment ordered by installment number

    Example:
        $100.00 / 3 -> [$33.33, $33.33, $33.34]
        round2(100 / 3) = 33.33, last = 100.00 - 2 * 33.33 = 33.34
        $0.15 / 10 -> [$0.01] * 9 + [$0.06]
    """
    if split_count < 1:
        raise InvalidDebtTermsError(f"split_count must be at least 1, got {split_count}")

    total = Decimal(total_due).quantize(CENT, rounding=ROUND_HALF_UP)
    if total <= 0:
        return []

    count = min(split_count, int(total / CENT))
    base_amount = (total / count).quantize(CENT, rounding=ROUND_HALF_UP)
    last_amount = total - base_amount * (count - 1)
    if last_amount <= 0:
        base_amount = (total / count).quantize(CENT, rounding=ROUND_DOWN)
        last_amount = total - base_amount * (count - 1)

    installments = []
    for i in range(count):
        # Always offset from the first date so day-of-month clamping does not drift
        due_date = add_months(first_due_date, i)
        amount = last_amount if i == count - 1 else base_amount
        installments.append(
            ScheduleInstallment(installment_number=i + 1, due_date=due_date, amount=amount)
        )

    return installments
