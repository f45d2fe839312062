"""Invoice aggregation - folds card purchases and installments into monthly invoices"""

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from fatura_gateway.domain.credit import calculate_available_credit
from fatura_gateway.domain.models import (
    Card,
    CardStatement,
    Installment,
    InvoiceBucket,
    InvoicePeriod,
    PaidInvoiceRecord,
    Purchase,
    RecurringMarker,
)
from fatura_gateway.domain.periods import (
    closing_date_for,
    due_date_for,
    resolve_installment_period,
    resolve_purchase_period,
)
from fatura_gateway.domain.register import PaidInvoiceRegister


def card_purchases(card: Card, purchases: Iterable[Purchase]) -> List[Purchase]:
    """Purchases billed directly on the card (financed ones are billed via installments)"""
    return [
        p for p in purchases
        if p.card_id is not None and p.card_id == card.id and not p.is_installment_financed
    ]


def open_installments(card: Card, installments: Iterable[Installment]) -> List[Installment]:
    """Unpaid installments of the card; paid ones no longer weigh on any invoice"""
    return [i for i in installments if i.card_id == card.id and not i.paid]


def _new_bucket(period: InvoicePeriod, card: Card, paid_record: Optional[PaidInvoiceRecord]) -> InvoiceBucket:
    return InvoiceBucket(
        year=period.year,
        month=period.month,
        closing_date=closing_date_for(period, card),
        due_date=due_date_for(period, card),
        paid=paid_record is not None,
        paid_date=paid_record.paid_date if paid_record else None,
    )


def order_invoices(buckets: Iterable[InvoiceBucket]) -> List[InvoiceBucket]:
    """Open invoices first, then paid ones; each group by due date, soonest first"""
    return sorted(buckets, key=lambda b: (b.paid, b.due_date))


def build_invoices(
    card: Card,
    purchases: Iterable[Purchase],
    installments: Iterable[Installment],
    paid_records: Iterable[PaidInvoiceRecord] | PaidInvoiceRegister = (),
) -> List[InvoiceBucket]:
    """
    Build the invoice list of one card.

    Purchases and installments of other cards are ignored, as are paid
    installments. The result has one bucket per period with at least one
    charge: open invoices first, then paid ones, each group by due date.
    """
    register = paid_records if isinstance(paid_records, PaidInvoiceRegister) else PaidInvoiceRegister(paid_records)
    early_closing = register.last_early_closing(card.id)

    buckets: Dict[str, InvoiceBucket] = {}

    def bucket_for(period: InvoicePeriod) -> InvoiceBucket:
        if period.key not in buckets:
            buckets[period.key] = _new_bucket(period, card, register.lookup(card.id, period))
        return buckets[period.key]

    for purchase in card_purchases(card, purchases):
        bucket = bucket_for(resolve_purchase_period(purchase.date, card, early_closing))
        bucket.purchases.append(purchase)
        bucket.total += purchase.value

    for installment in open_installments(card, installments):
        bucket = bucket_for(resolve_installment_period(installment.due_date))
        bucket.installments.append(installment)
        bucket.total += installment.value

    for bucket in buckets.values():
        bucket.purchases.sort(key=lambda p: p.date, reverse=True)  # latest spend first
        bucket.installments.sort(key=lambda i: i.due_date)  # soonest due first

    return order_invoices(buckets.values())


def compute_invoices(
    cards: Sequence[Card],
    purchases: Sequence[Purchase],
    installments: Sequence[Installment],
    paid_records: Sequence[PaidInvoiceRecord],
) -> Dict[str, List[InvoiceBucket]]:
    """Invoice lists for every card, keyed by card id"""
    register = PaidInvoiceRegister(paid_records)
    return {card.id: build_invoices(card, purchases, installments, register) for card in cards}


def compute_statements(
    cards: Sequence[Card],
    purchases: Sequence[Purchase],
    installments: Sequence[Installment],
    paid_records: Sequence[PaidInvoiceRecord],
    recurring_markers: Mapping[str, RecurringMarker],
    today: date,
) -> Dict[str, CardStatement]:
    """
    Main entry point: recompute every card statement from a data snapshot.

    Pure and idempotent; nothing is retained between calls, so callers may
    re-run it after every change or cache it keyed by their own snapshot.
    """
    register = PaidInvoiceRegister(paid_records)
    statements: Dict[str, CardStatement] = {}

    for card in cards:
        invoices = build_invoices(card, purchases, installments, register)
        available = calculate_available_credit(
            card.limit,
            open_installments(card, installments),
            card_purchases(card, purchases),
            recurring_markers,
            today,
        )
        statements[card.id] = CardStatement(
            card=card,
            invoices=invoices,
            available_credit=available,
            used_credit=card.limit - available,
        )

    return statements
