"""Data access layer for cards, charges and invoice payments"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from fatura_gateway.domain.exceptions import CardNotFoundError, InstallmentNotFoundError
from fatura_gateway.domain.models import (
    Card,
    Installment,
    PaidInvoiceRecord,
    PlannedInstallment,
    Purchase,
    RecurringMarker,
)
from fatura_gateway.domain.records import (
    card_from_record,
    installment_from_record,
    paid_invoice_from_record,
    purchase_from_record,
    recurring_markers_from_records,
)
from fatura_gateway.infrastructure.database.models import (
    CardRow,
    InstallmentRow,
    PaidInvoiceRow,
    PurchaseRow,
    RecurringPurchaseRow,
)


def as_record(row) -> Dict[str, Any]:
    """Plain column -> value mapping of an ORM row"""
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


@dataclass
class Snapshot:
    """Everything the invoice engine needs, as read in one pass"""

    cards: List[Card] = field(default_factory=list)
    purchases: List[Purchase] = field(default_factory=list)
    installments: List[Installment] = field(default_factory=list)
    paid_records: List[PaidInvoiceRecord] = field(default_factory=list)
    recurring_markers: Dict[str, RecurringMarker] = field(default_factory=dict)


class CardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def get_row(self, card_id: uuid.UUID) -> CardRow:
        row = self.db.query(CardRow).filter(CardRow.id == card_id).first()
        if row is None:
            raise CardNotFoundError(f"Card {card_id} not found")
        return row

    def get_card(self, card_id: uuid.UUID) -> Card:
        return card_from_record(as_record(self.get_row(card_id)))

    def list_cards(self) -> List[Card]:
        rows = self.db.query(CardRow).order_by(CardRow.nome).all()
        return [card_from_record(as_record(r)) for r in rows]


class PurchaseRepository:
    """Repository for card purchases"""

    def __init__(self, db: Session):
        self.db = db

    def list_card_purchases(self, card_id: uuid.UUID | None = None) -> List[Purchase]:
        query = self.db.query(PurchaseRow).filter(PurchaseRow.cartao_id.isnot(None))
        if card_id is not None:
            query = query.filter(PurchaseRow.cartao_id == card_id)
        rows = query.order_by(PurchaseRow.data.desc()).all()
        return [purchase_from_record(as_record(r)) for r in rows]

    def create_purchase(
        self,
        card_id: uuid.UUID,
        description: str,
        value: Decimal,
        purchase_date: date,
        category: str,
        plan: List[PlannedInstallment],
    ) -> Tuple[PurchaseRow, List[InstallmentRow]]:
        """Persist a card purchase and, for financed purchases, its installments"""
        financed = len(plan) > 1
        db_purchase = PurchaseRow(
            cartao_id=card_id,
            descricao=description,
            valor=value,
            data=purchase_date,
            categoria=category,
            parcelada=financed,
            total_parcelas=len(plan) if financed else 1,
        )
        self.db.add(db_purchase)
        self.db.flush()  # Get ID without committing

        db_installments = []
        if financed:
            for inst in plan:
                db_installment = InstallmentRow(
                    compra_id=db_purchase.id,
                    cartao_id=card_id,
                    descricao=f"{description} ({inst.number}/{inst.total})",
                    valor=inst.value,
                    numero_parcela=inst.number,
                    total_parcelas=inst.total,
                    data_vencimento=inst.due_date,
                    categoria=category,
                    paga=False,
                )
                self.db.add(db_installment)
                db_installments.append(db_installment)
            self.db.flush()

        return db_purchase, db_installments


class InstallmentRepository:
    """Repository for installments"""

    def __init__(self, db: Session):
        self.db = db

    def list_card_installments(self, card_id: uuid.UUID | None = None) -> List[Installment]:
        query = self.db.query(InstallmentRow).filter(InstallmentRow.cartao_id.isnot(None))
        if card_id is not None:
            query = query.filter(InstallmentRow.cartao_id == card_id)
        rows = query.order_by(InstallmentRow.data_vencimento).all()
        return [installment_from_record(as_record(r)) for r in rows]

    def set_paid(self, installment_id: uuid.UUID, paid: bool, paid_date: date | None = None) -> Installment:
        """Mark one installment paid (with its payment date) or open again"""
        row = self.db.query(InstallmentRow).filter(InstallmentRow.id == installment_id).first()
        if row is None:
            raise InstallmentNotFoundError(f"Installment {installment_id} not found")
        row.paga = paid
        row.data_pagamento = (paid_date or date.today()) if paid else None
        self.db.flush()
        return installment_from_record(as_record(row))


class PaidInvoiceRepository:
    """Repository for paid-invoice records, unique per card and period"""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, card_id: uuid.UUID, month: int, year: int) -> Optional[PaidInvoiceRow]:
        return (
            self.db.query(PaidInvoiceRow)
            .filter(
                PaidInvoiceRow.cartao_id == card_id,
                PaidInvoiceRow.mes_referencia == month,
                PaidInvoiceRow.ano_referencia == year,
            )
            .first()
        )

    def list_records(self, card_id: uuid.UUID | None = None) -> List[PaidInvoiceRecord]:
        query = self.db.query(PaidInvoiceRow)
        if card_id is not None:
            query = query.filter(PaidInvoiceRow.cartao_id == card_id)
        rows = query.order_by(PaidInvoiceRow.data_pagamento.desc()).all()
        return [paid_invoice_from_record(as_record(r)) for r in rows]

    def save(self, record: PaidInvoiceRecord) -> PaidInvoiceRecord:
        """Upsert on (cartao_id, mes_referencia, ano_referencia)"""
        card_id = uuid.UUID(record.card_id)
        row = self._get_row(card_id, record.month, record.year)
        if row is None:
            row = PaidInvoiceRow(
                cartao_id=card_id,
                mes_referencia=record.month,
                ano_referencia=record.year,
            )
            self.db.add(row)
        row.data_pagamento = record.paid_date
        row.total_pago = record.total_paid
        self.db.flush()
        return paid_invoice_from_record(as_record(row))

    def delete(self, card_id: uuid.UUID, month: int, year: int) -> bool:
        row = self._get_row(card_id, month, year)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True


class RecurringMarkerRepository:
    """Repository for recurring-purchase markers"""

    def __init__(self, db: Session):
        self.db = db

    def markers_by_purchase(self) -> Dict[str, RecurringMarker]:
        rows = self.db.query(RecurringPurchaseRow).all()
        return recurring_markers_from_records(as_record(r) for r in rows)


def load_snapshot(db: Session, card_id: uuid.UUID | None = None) -> Snapshot:
    """Read cards, charges, payments and recurring markers (optionally for one card)"""
    cards = [CardRepository(db).get_card(card_id)] if card_id is not None else CardRepository(db).list_cards()
    return Snapshot(
        cards=cards,
        purchases=PurchaseRepository(db).list_card_purchases(card_id),
        installments=InstallmentRepository(db).list_card_installments(card_id),
        paid_records=PaidInvoiceRepository(db).list_records(card_id),
        recurring_markers=RecurringMarkerRepository(db).markers_by_purchase(),
    )
