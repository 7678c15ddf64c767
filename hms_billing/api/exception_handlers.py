# hms_billing/api/exception_handlers.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hms_billing.core.errors import (
    BillNotFound,
    FetchFailure,
    InvalidAmount,
    MissingPatient,
    MutationFailure,
    ValidationError,
)
from hms_billing.utils.resp import err

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # exc.detail can be str/dict/list
        msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return err(msg=msg, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = {
            ".".join(str(p) for p in e.get("loc", ())[1:]) or "body": e.get("msg", "")
            for e in exc.errors()
        }
        return err(msg="Validation error", status_code=422, fields=fields)

    @app.exception_handler(ValidationError)
    async def draft_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return err(msg="Validation error", status_code=422, fields=exc.fields)

    @app.exception_handler(InvalidAmount)
    async def invalid_amount_handler(request: Request, exc: InvalidAmount) -> JSONResponse:
        return err(msg=f"Invalid amount: {exc.reason}", status_code=422)

    @app.exception_handler(BillNotFound)
    async def bill_not_found_handler(request: Request, exc: BillNotFound) -> JSONResponse:
        return err(msg=str(exc), status_code=404)

    @app.exception_handler(MissingPatient)
    async def missing_patient_handler(request: Request, exc: MissingPatient) -> JSONResponse:
        return err(msg=str(exc), status_code=404)

    @app.exception_handler(FetchFailure)
    @app.exception_handler(MutationFailure)
    async def upstream_handler(request: Request, exc: Exception) -> JSONResponse:
        return err(msg=str(exc) or "Upstream request failed", status_code=502)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return err(msg="Internal server error", status_code=500)
