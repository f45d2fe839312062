"""Available credit calculation"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from fatura_gateway.domain.models import Installment, Purchase, RecurringMarker


def is_recurring_charge_due(marker: Optional[RecurringMarker], today: date) -> bool:
    """A recurring charge counts from its nominal billing month onward, never before"""
    if marker is None:
        return True
    return (marker.year, marker.month) <= (today.year, today.month)


def calculate_available_credit(
    limit: Decimal,
    unpaid_installments: Iterable[Installment],
    purchases: Iterable[Purchase],
    recurring_markers: Mapping[str, RecurringMarker],
    today: date,
) -> Decimal:
    """
    Limit left on the card.

    - Unpaid installments always count, whatever their due date
    - Purchases count unless they are recurring charges billed in a future month

    A negative result means the limit is already exceeded.
    """
    installments_total = sum((i.value for i in unpaid_installments if not i.paid), Decimal("0"))
    purchases_total = sum(
        (p.value for p in purchases if is_recurring_charge_due(recurring_markers.get(p.id), today)),
        Decimal("0"),
    )
    return Decimal(limit) - (installments_total + purchases_total)
