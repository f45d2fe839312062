"""POST /v1/cards/{card_id}/purchases - Register a card purchase"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from fatura_gateway.api.dependencies import get_request_id, parse_card_id
from fatura_gateway.api.v1.schemas import PlannedInstallmentSchema, PurchaseRequest, PurchaseResponse
from fatura_gateway.domain.exceptions import CardNotFoundError, InvalidInstallmentPlanError, InvalidRecordDataError
from fatura_gateway.domain.installments import first_due_date_for, generate_installment_plan
from fatura_gateway.infrastructure.database.repositories import CardRepository, PurchaseRepository
from fatura_gateway.infrastructure.database.session import get_db

router = APIRouter()


@router.post("/cards/{card_id}/purchases", response_model=PurchaseResponse, status_code=201)
def create_purchase(
    card_id: str,
    body: PurchaseRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Register a purchase on a card.

    Flow:
    1. Single payment: stored as a purchase, billed by the card's closing day
    2. Financed (total_installments > 1): purchase flagged as financed plus one
       installment per month, due on the card's due day starting the month after
    """
    request_id = get_request_id(request)
    card_uuid = parse_card_id(card_id)

    try:
        card = CardRepository(db).get_card(card_uuid)
        plan = []
        if body.total_installments > 1:
            plan = generate_installment_plan(
                body.value,
                body.total_installments,
                first_due_date_for(body.date, card),
                due_day=card.due_day,
            )

        db_purchase, _ = PurchaseRepository(db).create_purchase(
            card_id=card_uuid,
            description=body.description.strip(),
            value=body.value,
            purchase_date=body.date,
            category=body.category.strip() or "Outros",
            plan=plan,
        )
        db.commit()

    except CardNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Card not found")

    except InvalidInstallmentPlanError as e:
        db.rollback()
        logging.warning(f"Invalid installment plan: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except InvalidRecordDataError:
        db.rollback()
        raise

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error registering purchase: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    logging.info(
        "Purchase registered",
        extra={
            "request_id": request_id,
            "card_id": str(card_uuid),
            "purchase_id": str(db_purchase.id),
            "installments": len(plan),
        },
    )

    return PurchaseResponse(
        purchase_id=str(db_purchase.id),
        installment_financed=bool(plan),
        installments=[PlannedInstallmentSchema.model_validate(inst) for inst in plan],
    )
