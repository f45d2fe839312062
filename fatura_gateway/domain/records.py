"""Conversion of plain persistence records into domain models"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping

from fatura_gateway.domain.exceptions import InvalidRecordDataError
from fatura_gateway.domain.models import (
    Card,
    Installment,
    PaidInvoiceRecord,
    Purchase,
    RecurringMarker,
)
from fatura_gateway.utils.date_utils import parse_iso_date


def to_decimal(value: Any) -> Decimal:
    """Money values arrive as numbers or numeric strings"""
    if value is None or isinstance(value, bool):
        raise InvalidRecordDataError(f"Invalid amount: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidRecordDataError(f"Invalid amount: {value!r}") from e


def _optional_id(value: Any) -> str | None:
    return str(value) if value is not None else None


def card_from_record(record: Mapping[str, Any]) -> Card:
    try:
        return Card(
            id=str(record["id"]),
            limit=to_decimal(record["limite"]),
            closing_day=int(record["fechamento"]),
            due_day=int(record["vencimento"]),
            name=record.get("nome") or "",
            brand=record.get("bandeira") or "",
            color=record.get("cor"),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidRecordDataError(f"Invalid card record: {e}") from e


def purchase_from_record(record: Mapping[str, Any]) -> Purchase:
    try:
        return Purchase(
            id=str(record["id"]),
            card_id=_optional_id(record.get("cartao_id")),
            value=to_decimal(record["valor"]),
            date=parse_iso_date(record["data"]),
            description=record.get("descricao") or "",
            category=record.get("categoria") or "",
            installment_financed=bool(record.get("parcelada") or False),
            total_installments=int(record.get("total_parcelas") or 1),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidRecordDataError(f"Invalid purchase record: {e}") from e


def installment_from_record(record: Mapping[str, Any]) -> Installment:
    try:
        paid_date = record.get("data_pagamento")
        return Installment(
            id=str(record["id"]),
            card_id=_optional_id(record.get("cartao_id")),
            value=to_decimal(record["valor"]),
            number=int(record["numero_parcela"]),
            total=int(record["total_parcelas"]),
            due_date=parse_iso_date(record["data_vencimento"]),
            paid=bool(record.get("paga") or False),
            paid_date=parse_iso_date(paid_date) if paid_date else None,
            purchase_id=_optional_id(record.get("compra_id")),
            description=record.get("descricao") or "",
            category=record.get("categoria") or "",
        )
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidRecordDataError(f"Invalid installment record: {e}") from e


def paid_invoice_from_record(record: Mapping[str, Any]) -> PaidInvoiceRecord:
    try:
        month = int(record["mes_referencia"])
        if not 1 <= month <= 12:
            raise ValueError(f"mes_referencia out of range: {month}")
        return PaidInvoiceRecord(
            card_id=str(record["cartao_id"]),
            month=month,
            year=int(record["ano_referencia"]),
            paid_date=parse_iso_date(record["data_pagamento"]),
            total_paid=to_decimal(record["total_pago"]),
            id=_optional_id(record.get("id")),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidRecordDataError(f"Invalid paid invoice record: {e}") from e


def recurring_markers_from_records(records: Iterable[Mapping[str, Any]]) -> Dict[str, RecurringMarker]:
    """Index recurring-purchase rows by purchase id (one marker per purchase)"""
    markers: Dict[str, RecurringMarker] = {}
    try:
        for record in records:
            marker = RecurringMarker(
                purchase_id=str(record["compra_id"]),
                month=int(record["mes"]),
                year=int(record["ano"]),
            )
            markers[marker.purchase_id] = marker
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidRecordDataError(f"Invalid recurring purchase record: {e}") from e
    return markers
