"""GET /v1/cards - Card statements with invoices and available credit"""

import time
import uuid
from datetime import date
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from fatura_gateway.api.dependencies import get_request_id, get_today, parse_card_id
from fatura_gateway.api.v1.schemas import StatementResponse, StatementsResponse
from fatura_gateway.domain.exceptions import CardNotFoundError
from fatura_gateway.domain.invoices import compute_statements
from fatura_gateway.domain.models import CardStatement
from fatura_gateway.infrastructure.database.repositories import load_snapshot
from fatura_gateway.infrastructure.database.session import get_db
from fatura_gateway.infrastructure.observability.logging import log_statement_refresh
from fatura_gateway.infrastructure.observability.metrics import record_statements, statement_recompute_histogram

router = APIRouter()


def refresh_statements(
    db: Session,
    today: date,
    request_id: str,
    card_id: uuid.UUID | None = None,
) -> Dict[str, CardStatement]:
    """Load a fresh snapshot and recompute statements from it"""
    start_time = time.perf_counter()
    snapshot = load_snapshot(db, card_id)

    with statement_recompute_histogram.time():
        statements = compute_statements(
            snapshot.cards,
            snapshot.purchases,
            snapshot.installments,
            snapshot.paid_records,
            snapshot.recurring_markers,
            today,
        )

    record_statements(statements.values())
    log_statement_refresh(
        request_id,
        card_count=len(statements),
        invoice_count=sum(len(s.invoices) for s in statements.values()),
        duration_ms=(time.perf_counter() - start_time) * 1000,
    )
    return statements


def card_statement(db: Session, card_id: uuid.UUID, today: date, request_id: str) -> StatementResponse:
    """Statement of a single card, 404 when the card doesn't exist"""
    try:
        statements = refresh_statements(db, today, request_id, card_id)
    except CardNotFoundError:
        raise HTTPException(status_code=404, detail="Card not found")
    return StatementResponse.model_validate(statements[str(card_id)])


@router.get("/cards", response_model=StatementsResponse)
def list_statements(
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Statements of every card.

    Returns:
        Per card: open invoices first (by due date), then paid ones, plus
        available and used credit
    """
    statements = refresh_statements(db, today, get_request_id(request))
    return StatementsResponse(
        statements=[StatementResponse.model_validate(s) for s in statements.values()]
    )


@router.get("/cards/{card_id}/statement", response_model=StatementResponse)
def get_statement(
    card_id: str,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Statement of one card"""
    return card_statement(db, parse_card_id(card_id), today, get_request_id(request))
