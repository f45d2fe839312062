"""Dependency injection for FastAPI endpoints"""

import uuid
from datetime import date

from fastapi import HTTPException, Request


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today() -> date:
    """Reference date for recurring charges and payment dates"""
    return date.today()


def parse_card_id(card_id: str) -> uuid.UUID:
    """Path card IDs are UUIDs"""
    try:
        return uuid.UUID(card_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid card ID format")


def parse_installment_id(installment_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(installment_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid installment ID format")
