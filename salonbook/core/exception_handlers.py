"""
Exception handlers that render domain errors as JSON

Response format:
{
    "error": "usage_exceeds_limits",
    "message": "Current usage exceeds new plan limits: staff: 15 (limit: 5)",
    "details": {"violations": {...}}
}
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from salonbook.core.exceptions import BillingGatewayError, SalonBookError

logger = structlog.get_logger(__name__)


async def salonbook_error_handler(request: Request, exc: SalonBookError) -> JSONResponse:
    if exc.status_code >= 500 or isinstance(exc, BillingGatewayError):
        logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}", details=exc.details)
    else:
        logger.info(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(SalonBookError, salonbook_error_handler)
