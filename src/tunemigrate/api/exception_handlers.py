"""Custom exception handlers for the FastAPI application.

Converts domain exceptions into HTTP responses. Response shapes are what the
browser frontend expects:
- UnsupportedOptionError -> 400, PLAIN TEXT body (the frontend shows it verbatim)
- everything else        -> JSON {"message": ...}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from tunemigrate.domain.exceptions import (
    AuthenticationError,
    EntityNotFoundException,
    GatewayError,
    ProgressAllocationError,
    ProviderAPIError,
    UnsupportedOptionError,
)

logger = logging.getLogger(__name__)


# Hey future me - pydantic's exc.errors() can carry the raw body as bytes in 'input',
# which JSONResponse can't serialize. Walk the structure and decode them.
def _sanitize_validation_errors(
    errors: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, dict):
            return {k: _sanitize_value(v) for k, v in value.items()}
        if isinstance(value, list | tuple):
            return [_sanitize_value(item) for item in value]
        return value

    return [_sanitize_value(error) for error in errors]


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain and validation exceptions.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(UnsupportedOptionError)
    async def unsupported_option_handler(
        request: Request, exc: UnsupportedOptionError
    ) -> PlainTextResponse:
        """Reject the request shape with 400 and a plain text reason."""
        logger.warning(
            "Unsupported option at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "option": exc.option},
        )
        return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(EntityNotFoundException)
    async def entity_not_found_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        logger.info(
            "Entity not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={
                "path": request.url.path,
                "entity_type": exc.entity_type,
                "entity_id": str(exc.entity_id),
            },
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"message": exc.message},
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        logger.info("Unauthenticated request to %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"message": exc.message},
        )

    @app.exception_handler(ProgressAllocationError)
    async def progress_allocation_handler(
        request: Request, exc: ProgressAllocationError
    ) -> JSONResponse:
        logger.error("Could not allocate progress record: %s", exc.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": exc.message},
        )

    @app.exception_handler(ProviderAPIError)
    async def provider_api_error_handler(
        request: Request, exc: ProviderAPIError
    ) -> JSONResponse:
        """Provider refused a synchronous call (only the status/lookup endpoints)."""
        logger.warning(
            "Provider error at %s: %s",
            request.url.path,
            exc.message,
            extra={"provider": exc.provider, "status_code": exc.status_code},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"message": exc.message},
        )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(
        request: Request, exc: GatewayError
    ) -> JSONResponse:
        logger.warning(
            "Provider unreachable at %s: %s",
            request.url.path,
            exc.message,
            extra={"provider": exc.provider},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            sanitized_errors,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"message": "Invalid request body", "detail": sanitized_errors},
        )
