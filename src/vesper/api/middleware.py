"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from vesper.models.errors import (
    CatalogError,
    ConfigurationError,
    ErrorResponse,
    OperationCancelled,
    ProviderError,
    ProviderErrorKind,
    RenderError,
    RenderTimeout,
    ValidationError,
    VesperError,
)

logger = logging.getLogger(__name__)


async def vesper_error_handler(request: Request, exc: VesperError) -> JSONResponse:
    """Handle VesperError exceptions."""
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    response = ErrorResponse.from_exception(exc)
    return JSONResponse(status_code=status_code, content=response.model_dump())


def _get_status_code(exc: VesperError) -> int:
    """Map error type to HTTP status code."""
    if isinstance(exc, (ValidationError, CatalogError)):
        return 400
    elif isinstance(exc, ConfigurationError):
        return 412
    elif isinstance(exc, OperationCancelled):
        return 409
    elif isinstance(exc, ProviderError):
        return 429 if exc.kind == ProviderErrorKind.RATE_LIMITED else 502
    elif isinstance(exc, RenderTimeout):
        return 504
    elif isinstance(exc, RenderError):
        return 502
    return 500
