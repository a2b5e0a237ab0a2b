import datetime
from typing import Any, Dict

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from energy_trade_hub.exceptions import EnergyTradeHubError
from energy_trade_hub.logging_config import logger


class ErrorResponse:
    """JSON body returned for every rejected request."""

    def __init__(
        self,
        status_code: int,
        message: str,
        error_type: str,
        request: Request | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        self.timestamp = datetime.datetime.now()
        self.status_code = status_code
        self.message = message
        self.error_type = error_type
        self.details = dict(details or {})
        if request is not None:
            self.details["method"] = request.method
            self.details["path"] = request.url.path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "error_message": self.message,
            "details": self.details,
            "error_type": self.error_type,
        }

    def to_json(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


def format_validation_error(exc: RequestValidationError, request: Request) -> ErrorResponse:
    """One entry per invalid field, with the submitted value for body fields"""
    body = exc.body if isinstance(exc.body, dict) else {}
    errors = []
    for err in exc.errors():
        loc = err["loc"]
        field = loc[-1] if len(loc) > 1 else None
        errors.append(
            {
                "location": " -> ".join(str(part) for part in loc),
                "field": field,
                "invalid_value": body.get(field) if loc[0] == "body" else None,
                "message": err["msg"],
                "type": err["type"],
            }
        )

    return ErrorResponse(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "validation_error",
        request=request,
        details={"errors": errors},
    )


async def registry_exception_handler(
    request: Request, exc: EnergyTradeHubError
) -> JSONResponse:
    """Render a rejected ledger operation. State is unchanged, so this is a client error."""
    error_response = ErrorResponse(
        exc.status_code,
        exc.message,
        exc.error_type,
        request=request,
        details={k: str(v) for k, v in exc.details.items()},
    )
    logger.info(f"Registry error: {error_response.to_dict()}")
    return error_response.to_json()


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error_response = format_validation_error(exc, request)
    logger.warning(f"Invalid request to {request.url.path}: {error_response.details['errors']}")
    return error_response.to_json()


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    error_response = ErrorResponse(
        exc.status_code, str(exc.detail), "http_error", request=request
    )
    logger.warning(f"HTTP error: {error_response.to_dict()}")
    return error_response.to_json()


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return ErrorResponse(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc),
        "server_error",
        request=request,
        details={"exception_type": type(exc).__name__},
    ).to_json()
