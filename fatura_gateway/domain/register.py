"""Paid-invoice register - manually confirmed invoice payments keyed by card and period"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from fatura_gateway.domain.exceptions import InvalidInvoicePeriodError
from fatura_gateway.domain.models import InvoicePeriod, PaidInvoiceRecord

RegisterKey = Tuple[str, int, int]  # (card_id, year, month)


def last_early_closing(records: Iterable[PaidInvoiceRecord]) -> Optional[date]:
    """Payment date of the most recent paid invoice, or None without any"""
    paid_dates = [r.paid_date for r in records]
    return max(paid_dates) if paid_dates else None


class PaidInvoiceRegister:
    """
    At most one record per (card_id, month, year).

    Writes go through a plain dict keyed by that triple, so a second mark for
    the same invoice replaces the first (last write wins).
    """

    def __init__(self, records: Iterable[PaidInvoiceRecord] = ()):
        self._records: Dict[RegisterKey, PaidInvoiceRecord] = {}
        for record in records:
            self._records[self._key(record.card_id, record.month, record.year)] = record

    @staticmethod
    def _key(card_id: str, month: int, year: int) -> RegisterKey:
        return (str(card_id), int(year), int(month))

    def mark_paid(
        self,
        card_id: str,
        month: int,
        year: int,
        total: Decimal,
        paid_date: date | None = None,
    ) -> PaidInvoiceRecord:
        """Record (or overwrite) the payment of one invoice"""
        if not 1 <= month <= 12:
            raise InvalidInvoicePeriodError(f"month must be 1-12, got {month}")
        key = self._key(card_id, month, year)
        existing = self._records.get(key)
        record = PaidInvoiceRecord(
            card_id=str(card_id),
            month=month,
            year=year,
            paid_date=paid_date or date.today(),
            total_paid=Decimal(total),
            id=existing.id if existing else None,
        )
        self._records[key] = record
        return record

    def unmark_paid(self, card_id: str, month: int, year: int) -> Optional[PaidInvoiceRecord]:
        """Drop the payment record; returns it, or None when there was none"""
        return self._records.pop(self._key(card_id, month, year), None)

    def lookup(self, card_id: str, period: InvoicePeriod) -> Optional[PaidInvoiceRecord]:
        return self._records.get(self._key(card_id, period.month, period.year))

    def records_for(self, card_id: str) -> List[PaidInvoiceRecord]:
        card_id = str(card_id)
        return [r for (cid, _, _), r in sorted(self._records.items()) if cid == card_id]

    def last_early_closing(self, card_id: str) -> Optional[date]:
        return last_early_closing(self.records_for(card_id))

    def __len__(self) -> int:
        return len(self._records)
