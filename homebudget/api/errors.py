"""
Service errors -> HTTP responses

Body shape for every failure: {"error": {"code": ..., "message": ...}}
"""
import logging
import re

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from homebudget.application.errors import (
    BudgetServiceError,
    ConflictError,
    NotFoundError,
    Unauthorized,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

RESULT_CODE_HEADER = "X-Result-Code"

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def status_for(exc: BudgetServiceError) -> int:
    if isinstance(exc, ValidationFailed):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, Unauthorized):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers={RESULT_CODE_HEADER: code},
    )


def validation_error_code(location: tuple) -> str:
    """
    ("body", ...)               -> INVALID_PAYLOAD
    ("query", ...)              -> INVALID_QUERY_PARAMS
    ("path", "budgetId")        -> INVALID_BUDGET_ID
    """
    if not location or location[0] == "body":
        return "INVALID_PAYLOAD"
    if location[0] == "query":
        return "INVALID_QUERY_PARAMS"
    if location[0] == "path" and len(location) > 1:
        return f"INVALID_{_CAMEL_BOUNDARY.sub('_', str(location[1])).upper()}"
    return "INVALID_PAYLOAD"


async def service_error_handler(request: Request, exc: BudgetServiceError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    return error_response(exc.code, exc.message, status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = tuple(first.get("loc", ()))
    field = ".".join(str(part) for part in location[1:])
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return error_response(validation_error_code(location), message, status.HTTP_400_BAD_REQUEST)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BudgetServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
