"""Domain models - pure Python dataclasses representing cards, charges and invoices"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class InvoicePeriod:
    """Invoice bucket identity: the month (1-12) and year an invoice closes in"""

    year: int
    month: int

    @property
    def key(self) -> str:
        return f"{self.year}-{self.month:02d}"


@dataclass
class Card:
    """Credit card with its billing-cycle configuration"""

    id: str
    limit: Decimal
    closing_day: int  # 1-31, clamped to the month's last day
    due_day: int  # 1-31, in the month after closing
    name: str = ""
    brand: str = ""
    color: Optional[str] = None


@dataclass
class Purchase:
    """Single purchase; only card purchases take part in invoices"""

    id: str
    card_id: Optional[str]
    value: Decimal
    date: date
    description: str = ""
    category: str = ""
    installment_financed: bool = False
    total_installments: int = 1

    @property
    def is_installment_financed(self) -> bool:
        """Financed purchases are billed through their installments, not directly"""
        return self.installment_financed or self.total_installments > 1


@dataclass
class Installment:
    """One installment of a financed purchase, billed by its own due date"""

    id: str
    card_id: Optional[str]
    value: Decimal
    number: int
    total: int
    due_date: date
    paid: bool = False
    paid_date: Optional[date] = None
    purchase_id: Optional[str] = None
    description: str = ""
    category: str = ""


@dataclass
class PaidInvoiceRecord:
    """Manually confirmed invoice payment; unique per (card_id, month, year)"""

    card_id: str
    month: int  # 1-12
    year: int
    paid_date: date
    total_paid: Decimal
    id: Optional[str] = None

    @property
    def period(self) -> InvoicePeriod:
        return InvoicePeriod(self.year, self.month)


@dataclass
class RecurringMarker:
    """Month/year a recurring purchase is nominally billed for"""

    purchase_id: str
    month: int  # 1-12
    year: int


@dataclass
class InvoiceBucket:
    """Derived invoice for one card and period"""

    year: int
    month: int
    closing_date: date
    due_date: date
    purchases: List[Purchase] = field(default_factory=list)
    installments: List[Installment] = field(default_factory=list)
    total: Decimal = Decimal("0")
    paid: bool = False
    paid_date: Optional[date] = None

    @property
    def period(self) -> InvoicePeriod:
        return InvoicePeriod(self.year, self.month)

    @property
    def key(self) -> str:
        return self.period.key


@dataclass
class CardStatement:
    """Card summary shown to the user: invoices and credit usage"""

    card: Card
    invoices: List[InvoiceBucket]
    available_credit: Decimal
    used_credit: Decimal


@dataclass
class PlannedInstallment:
    """Installment of a repayment schedule, before it is persisted"""

    number: int
    total: int
    due_date: date
    value: Decimal
