"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CardSchema(BaseModel):
    """Card and its billing cycle"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    brand: str
    limit: Decimal
    closing_day: int
    due_day: int
    color: Optional[str] = None


class PurchaseSchema(BaseModel):
    """Purchase billed on an invoice"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str
    value: Decimal
    date: date
    category: str


class InstallmentSchema(BaseModel):
    """Installment billed on an invoice"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    purchase_id: Optional[str] = None
    description: str
    value: Decimal
    number: int
    total: int
    due_date: date
    paid: bool
    paid_date: Optional[date] = None


class InvoiceSchema(BaseModel):
    """One monthly invoice of a card"""

    model_config = ConfigDict(from_attributes=True)

    key: str
    year: int
    month: int = Field(..., ge=1, le=12)
    closing_date: date
    due_date: date
    total: Decimal
    paid: bool
    paid_date: Optional[date] = None
    purchases: List[PurchaseSchema]
    installments: List[InstallmentSchema]


class StatementResponse(BaseModel):
    """Response for GET /v1/cards/{card_id}/statement"""

    model_config = ConfigDict(from_attributes=True)

    card: CardSchema
    invoices: List[InvoiceSchema]
    available_credit: Decimal
    used_credit: Decimal


class StatementsResponse(BaseModel):
    """Response for GET /v1/cards"""

    statements: List[StatementResponse]


class MarkPaidRequest(BaseModel):
    """Request body for PUT /v1/cards/{card_id}/invoices/{year}/{month}/payment"""

    total_paid: Decimal = Field(..., ge=0, description="Amount paid for the invoice")
    paid_date: Optional[date] = Field(None, description="Payment date (default: today)")


class InstallmentPaymentRequest(BaseModel):
    """Request body for PUT /v1/installments/{installment_id}/payment"""

    paid_date: Optional[date] = Field(None, description="Payment date (default: today)")


class PurchaseRequest(BaseModel):
    """Request body for POST /v1/cards/{card_id}/purchases"""

    description: str = Field(..., min_length=1)
    value: Decimal = Field(..., gt=0, decimal_places=2)
    date: date
    category: str = "Outros"
    total_installments: int = Field(1, ge=1, le=72)


class PlannedInstallmentSchema(BaseModel):
    """Installment generated for a financed purchase"""

    model_config = ConfigDict(from_attributes=True)

    number: int
    total: int
    due_date: date
    value: Decimal


class PurchaseResponse(BaseModel):
    """Response for POST /v1/cards/{card_id}/purchases"""

    purchase_id: str
    installment_financed: bool
    installments: List[PlannedInstallmentSchema]
