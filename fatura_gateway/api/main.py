"""FastAPI application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fatura_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fatura_gateway.api.v1 import statements, payments, purchases
from fatura_gateway.domain.exceptions import InvalidRecordDataError
from fatura_gateway.infrastructure.observability.logging import setup_logging
from fatura_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


async def invalid_record_handler(request: Request, exc: InvalidRecordDataError) -> JSONResponse:
    """Stored data the engine can't read is reported, never coerced"""
    logging.error(
        f"Invalid stored record: {exc}",
        extra={"request_id": getattr(request.state, "request_id", "unknown")},
    )
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Fatura Gateway",
        description="Credit card invoices and available credit",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(InvalidRecordDataError, invalid_record_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(statements.router, prefix="/v1", tags=["statements"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(purchases.router, prefix="/v1", tags=["purchases"])

    return app


app = create_app()
