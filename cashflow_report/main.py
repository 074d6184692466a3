"""Cash-flow report service - FastAPI application."""

import time
import traceback
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cashflow_report import __version__
from cashflow_report.config import settings
from cashflow_report.constants.error_ids import ErrorIds
from cashflow_report.database import get_db
from cashflow_report.logger import configure_logging, get_logger
from cashflow_report.routers import reports

# Initialize logging early
configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Cash Flow Report API",
    description="Month-by-month cash flow reports over accounts and invoices ledgers",
    version=__version__,
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next: Any) -> Response:
    """Middleware to inject Request-ID and log request details."""
    request_id = request.headers.get("X-Request-ID", str(uuid4()))

    # contextvars are per task; start each request from a clean slate
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start_time = time.perf_counter()
    try:
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        logger.info(
            "HTTP Request",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as exc:
        duration = time.perf_counter() - start_time
        logger.exception(
            "HTTP Request Failed",
            error_id=ErrorIds.REPORT_GENERATION_FAILED,
            duration_ms=round(duration * 1000, 2),
            error=str(exc),
        )
        raise


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler to ensure JSON response."""
    # Only show exception details in DEBUG mode
    if settings.debug:
        detail = str(exc)
        trace = traceback.format_exc()
    else:
        detail = "An internal server error occurred. Please try again later."
        trace = None

    return JSONResponse(
        status_code=500,
        content={
            "detail": detail,
            "trace": trace,
            "request_id": structlog.contextvars.get_contextvars().get("request_id"),
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

app.include_router(reports.router)


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> Response:
    """Report whether the ledger database is reachable. 200 when healthy, 503 otherwise."""
    checks = {}
    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except (SQLAlchemyError, OSError) as exc:
        logger.error(
            "Health check: database unreachable",
            error_id=ErrorIds.LEDGER_SOURCE_UNAVAILABLE,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        checks["database"] = False

    all_healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "status": "healthy" if all_healthy else "unhealthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
            "version": __version__,
        },
    )
