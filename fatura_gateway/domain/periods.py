"""Invoice period resolution - which monthly invoice a charge belongs to"""

from datetime import date
from typing import Optional

from fatura_gateway.domain.models import Card, InvoicePeriod
from fatura_gateway.utils.date_utils import clamped_date, next_month


def closing_date_for(period: InvoicePeriod, card: Card) -> date:
    """Regular closing date of an invoice: the card's closing day in the period month"""
    return clamped_date(period.year, period.month, card.closing_day)


def due_date_for(period: InvoicePeriod, card: Card) -> date:
    """Due date of an invoice: the card's due day in the month after the period"""
    year, month = next_month(period.year, period.month)
    return clamped_date(year, month, card.due_day)


def default_period(charge_date: date, card: Card) -> InvoicePeriod:
    """
    Closing-day rule.

    Charges made before the closing day belong to the invoice of their own
    month; charges on or after the closing day go to the next month's invoice.
    The comparison is on the raw day number.
    """
    if charge_date.day >= card.closing_day:
        return InvoicePeriod(*next_month(charge_date.year, charge_date.month))
    return InvoicePeriod(charge_date.year, charge_date.month)


def resolve_purchase_period(
    purchase_date: date,
    card: Card,
    last_early_closing: Optional[date] = None,
) -> InvoicePeriod:
    """
    Resolve the invoice period of a purchase.

    When the card has an early closing (its most recent invoice payment) and
    the purchase comes after it, the purchase opens the invoice of the month
    following that payment, up to that invoice's regular closing date. Past
    that date, or without an early closing, the closing-day rule applies.
    """
    if last_early_closing is not None and purchase_date > last_early_closing:
        candidate = InvoicePeriod(*next_month(last_early_closing.year, last_early_closing.month))
        if purchase_date < closing_date_for(candidate, card):
            return candidate

    return default_period(purchase_date, card)


def resolve_installment_period(due_date: date) -> InvoicePeriod:
    """Installments carry an explicit due date and are billed in its month"""
    return InvoicePeriod(due_date.year, due_date.month)
