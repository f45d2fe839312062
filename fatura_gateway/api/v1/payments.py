"""Invoice and installment payment endpoints"""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from sqlalchemy.orm import Session

from fatura_gateway.api.dependencies import get_request_id, get_today, parse_card_id, parse_installment_id
from fatura_gateway.api.v1.schemas import (
    InstallmentPaymentRequest,
    InstallmentSchema,
    MarkPaidRequest,
    StatementResponse,
)
from fatura_gateway.api.v1.statements import card_statement
from fatura_gateway.domain.exceptions import CardNotFoundError, InstallmentNotFoundError, InvalidRecordDataError
from fatura_gateway.domain.register import PaidInvoiceRegister
from fatura_gateway.infrastructure.database.repositories import (
    CardRepository,
    InstallmentRepository,
    PaidInvoiceRepository,
)
from fatura_gateway.infrastructure.database.session import get_db
from fatura_gateway.infrastructure.observability.logging import log_register_change
from fatura_gateway.infrastructure.observability.metrics import (
    installment_payment_counter,
    register_change_counter,
)

router = APIRouter()

Month = Annotated[int, Path(ge=1, le=12, description="Invoice month (1-12)")]
Year = Annotated[int, Path(ge=1900, le=9999, description="Invoice year")]


@router.put("/cards/{card_id}/invoices/{year}/{month}/payment", response_model=StatementResponse)
def mark_invoice_paid(
    card_id: str,
    body: MarkPaidRequest,
    request: Request,
    year: Year,
    month: Month,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Mark an invoice as paid.

    Upserts the payment record for (card, month, year). Purchases made after
    the payment date open the next invoice until its regular closing date.

    Returns:
        The card statement recomputed after the change
    """
    request_id = get_request_id(request)
    card_uuid = parse_card_id(card_id)
    repo = PaidInvoiceRepository(db)

    try:
        CardRepository(db).get_row(card_uuid)
        register = PaidInvoiceRegister(repo.list_records(card_uuid))
        record = register.mark_paid(str(card_uuid), month, year, body.total_paid, body.paid_date or today)
        repo.save(record)
        db.commit()

    except CardNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Card not found")

    except InvalidRecordDataError:
        db.rollback()
        raise

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error marking invoice paid: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    register_change_counter.labels(action="mark").inc()
    log_register_change(request_id, "mark", str(card_uuid), month, year)
    return card_statement(db, card_uuid, today, request_id)


@router.delete("/cards/{card_id}/invoices/{year}/{month}/payment", response_model=StatementResponse)
def unmark_invoice_paid(
    card_id: str,
    request: Request,
    year: Year,
    month: Month,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Undo an invoice payment.

    Charges placed in a new invoice by that early closing are redistributed
    under the card's closing-day rule.
    """
    request_id = get_request_id(request)
    card_uuid = parse_card_id(card_id)
    repo = PaidInvoiceRepository(db)

    try:
        CardRepository(db).get_row(card_uuid)
        register = PaidInvoiceRegister(repo.list_records(card_uuid))
        removed = register.unmark_paid(str(card_uuid), month, year)
        if removed is not None:
            repo.delete(card_uuid, month, year)
            db.commit()

    except CardNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Card not found")

    except InvalidRecordDataError:
        db.rollback()
        raise

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error unmarking invoice: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if removed is None:
        raise HTTPException(status_code=404, detail="Invoice is not marked as paid")

    register_change_counter.labels(action="unmark").inc()
    log_register_change(request_id, "unmark", str(card_uuid), month, year)
    return card_statement(db, card_uuid, today, request_id)


@router.put("/installments/{installment_id}/payment", response_model=InstallmentSchema)
def mark_installment_paid(
    installment_id: str,
    body: InstallmentPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Mark one installment as paid; it leaves its invoice and frees credit"""
    return _set_installment_paid(db, installment_id, True, body.paid_date or today, get_request_id(request))


@router.delete("/installments/{installment_id}/payment", response_model=InstallmentSchema)
def unmark_installment_paid(
    installment_id: str,
    request: Request,
    db: Session = Depends(get_db),
):
    """Reopen an installment"""
    return _set_installment_paid(db, installment_id, False, None, get_request_id(request))


def _set_installment_paid(db: Session, installment_id: str, paid: bool, paid_date: date | None, request_id: str):
    installment_uuid = parse_installment_id(installment_id)
    try:
        installment = InstallmentRepository(db).set_paid(installment_uuid, paid, paid_date)
        db.commit()

    except InstallmentNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Installment not found")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error changing installment payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    action = "mark" if paid else "unmark"
    installment_payment_counter.labels(action=action).inc()
    logging.info(
        "Installment payment changed",
        extra={"request_id": request_id, "installment_id": installment.id, "action": action},
    )
    return InstallmentSchema.model_validate(installment)
