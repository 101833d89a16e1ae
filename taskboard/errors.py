"""Error taxonomy for the JSON API.

Every failure leaves the API as ``{"error": ...}``. Validation failures use a
flattened ``{"formErrors": [...], "fieldErrors": {field: [...]}}`` shape so the
forms can show messages next to their inputs.
"""

from typing import Any, Iterable, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

_LOCATIONS = {"body", "query", "path", "header", "cookie"}


class ApiError(Exception):
    """An error with a status code and a JSON-serialisable ``error`` payload."""

    def __init__(self, status_code: int, error: Any):
        super().__init__(error)
        self.status_code = status_code
        self.error = error


def form_error(message: str, fields: Optional[Mapping[str, list]] = None) -> dict:
    return {"formErrors": [message], "fieldErrors": dict(fields or {})}


def flatten_errors(errors: Iterable[Mapping[str, Any]]) -> dict:
    """Group pydantic error dicts by field name.

    Errors without a named field (bad JSON, missing body) become form errors.
    """
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for err in errors:
        loc = [part for part in err.get("loc", ()) if part not in _LOCATIONS]
        field = next((part for part in loc if isinstance(part, str)), None)
        message = str(err.get("msg", "Invalid value"))
        if field is None:
            form_errors.append(message)
        else:
            field_errors.setdefault(field, []).append(message)
    return {"formErrors": form_errors, "fieldErrors": field_errors}


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse({"error": exc.error}, status_code=exc.status_code)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Validation failed on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse({"error": flatten_errors(exc.errors())}, status_code=400)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
