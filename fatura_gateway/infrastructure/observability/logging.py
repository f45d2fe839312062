"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter

from fatura_gateway.config import settings


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)


def log_statement_refresh(request_id: str, card_count: int, invoice_count: int, duration_ms: float) -> None:
    """Log one recomputation of card statements"""
    logging.info(
        "Statements recomputed",
        extra={
            "request_id": request_id,
            "step": "statement_refresh",
            "card_count": card_count,
            "invoice_count": invoice_count,
            "duration_ms": duration_ms,
        },
    )


def log_register_change(request_id: str, action: str, card_id: str, month: int, year: int) -> None:
    """Log an invoice being marked or unmarked as paid"""
    logging.info(
        "Paid invoice register changed",
        extra={
            "request_id": request_id,
            "step": "register_change",
            "action": action,
            "card_id": card_id,
            "invoice_period": f"{year}-{month:02d}",
        },
    )
