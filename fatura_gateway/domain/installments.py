"""Installment plan generation for financed card purchases"""

from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import List

from fatura_gateway.domain.exceptions import InvalidInstallmentPlanError
from fatura_gateway.domain.models import Card, PlannedInstallment
from fatura_gateway.utils.date_utils import shift_date

CENT = Decimal("0.01")


def first_due_date_for(purchase_date: date, card: Card) -> date:
    """First installment falls on the card's due day of the month after the purchase"""
    return shift_date(purchase_date, 1, day=card.due_day)


def schedule_future_installments(
    first_due_date: date,
    start_number: int,
    total: int,
    due_day: int,
) -> List[date]:
    """
    Due dates for installments start_number..total, one month apart.

    Used when registering a plan that is already under way (e.g. "installment
    3 of 10 is due on ..."): the first date is the given one moved onto the
    card's due day, the rest follow month by month.
    """
    if start_number < 1 or total < start_number:
        raise InvalidInstallmentPlanError(f"Invalid installment range {start_number}..{total}")
    return [shift_date(first_due_date, offset, day=due_day) for offset in range(total - start_number + 1)]


def generate_installment_plan(
    value: Decimal,
    total_installments: int,
    first_due_date: date,
    due_day: int | None = None,
) -> List[PlannedInstallment]:
    """
    Split a purchase into monthly installments.

    Requirements:
    - Equal installments rounded down to the cent
    - Last installment absorbs the rounding remainder, so the plan sums to the value
    - Due dates one month apart, on `due_day` (default: the first due date's day)

    Example:
        R$ 100.00 in 3 → [33.33, 33.33, 33.34]
    """
    value = Decimal(value)
    if total_installments < 1:
        raise InvalidInstallmentPlanError("A plan needs at least one installment")
    if value <= 0:
        raise InvalidInstallmentPlanError(f"Cannot split a non-positive value: {value}")

    base_value = (value / total_installments).quantize(CENT, rounding=ROUND_DOWN)
    remainder = value - base_value * total_installments

    day = due_day if due_day is not None else first_due_date.day
    due_dates = schedule_future_installments(first_due_date, 1, total_installments, day)

    installments = []
    for i, due_date in enumerate(due_dates):
        amount = base_value + (remainder if i == total_installments - 1 else Decimal("0"))
        installments.append(
            PlannedInstallment(number=i + 1, total=total_installments, due_date=due_date, value=amount)
        )

    return installments
