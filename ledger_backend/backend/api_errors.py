# backend/api_errors.py
"""
API ERROR MAPPING

DRF exception handler for the ledger service error hierarchy
(accounting/services/exceptions.py).

- Validation and business-rule errors return their actionable message
  (which item is short, which voucher is in which state, ...)
- Concurrency and persistence errors return a generic, retry-safe message
  plus the request id; internals are only logged
- Anything else falls through to DRF's default handler
"""

from __future__ import annotations

import logging
import uuid

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InsufficientStockError,
    InvalidStateError,
    LedgerServiceError,
    NotFoundError,
    PersistenceFailureError,
)

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "The operation could not be completed right now. Please retry."

# Most specific first.
STATUS_BY_ERROR = (
    (InputValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (InsufficientStockError, status.HTTP_409_CONFLICT, "insufficient_stock"),
    (InvalidStateError, status.HTTP_409_CONFLICT, "invalid_state"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (ConcurrencyConflictError, status.HTTP_409_CONFLICT, "concurrency_conflict"),
    (PersistenceFailureError, status.HTTP_503_SERVICE_UNAVAILABLE, "persistence_failure"),
)


def _request_id(context) -> str:
    request = (context or {}).get("request")
    ledger_context = getattr(request, "ledger_context", None)
    if ledger_context is not None:
        return ledger_context.request_id

    meta = getattr(request, "META", None) or {}
    return (meta.get("HTTP_X_REQUEST_ID") or "").strip() or uuid.uuid4().hex


def _classify(exc: LedgerServiceError) -> tuple[int, str]:
    for error_class, http_status, code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return http_status, code
    return status.HTTP_400_BAD_REQUEST, "ledger_error"


def ledger_exception_handler(exc, context):
    if isinstance(exc, DatabaseError):
        exc = PersistenceFailureError(str(exc))

    if not isinstance(exc, LedgerServiceError):
        return exception_handler(exc, context)

    http_status, code = _classify(exc)
    request_id = _request_id(context)

    if exc.retryable:
        logger.warning(
            "Transient ledger failure",
            extra={"code": code, "error": str(exc), "request_id": request_id},
        )
        return Response(
            {"detail": RETRY_MESSAGE, "code": code, "retryable": True, "request_id": request_id},
            status=http_status,
        )

    body = {"detail": str(exc), "code": code, "retryable": False, "request_id": request_id}
    if isinstance(exc, InsufficientStockError):
        body.update(
            {
                "item": getattr(exc.item, "sku", str(exc.item)),
                "requested": str(exc.requested),
                "available": str(exc.available),
            }
        )

    log = logger.warning if http_status == status.HTTP_409_CONFLICT else logger.info
    log("Ledger request rejected", extra={"code": code, "error": str(exc), "request_id": request_id})
    return Response(body, status=http_status)
