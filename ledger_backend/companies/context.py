# companies/context.py

"""
======================================================
PATH: companies/context.py
======================================================
REQUEST CONTEXT

Explicit, request-scoped identity threaded through every ledger operation
and orchestrator as `context=`.

Rules:
- Services never read tenant/user identity from globals or thread-locals.
- Every query a service runs is filtered by context.company.
- The API layer builds the context once per request (X-Company-ID header +
  authenticated user); tests and management commands build it directly.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from accounting.services.exceptions import InputValidationError, NotFoundError
from companies.models import Company

COMPANY_HEADER = "HTTP_X_COMPANY_ID"


@dataclass(frozen=True)
class RequestContext:
    company: Company
    user: Any = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def company_id(self):
        return self.company.pk

    @property
    def user_id(self):
        return getattr(self.user, "pk", None)


def build_context(*, company: Company, user=None, request_id: str | None = None) -> RequestContext:
    if company is None:
        raise InputValidationError("A company is required to build a request context")
    if not company.is_active:
        raise InputValidationError(f"Company {company.code} is inactive")

    if request_id:
        return RequestContext(company=company, user=user, request_id=request_id)
    return RequestContext(company=company, user=user)


def context_from_request(request) -> RequestContext:
    """
    Resolve the acting company from the X-Company-ID header.

    The header may carry the numeric id or the company code. Users who are not
    members of the company get NotFound (tenant existence is not leaked).
    """
    raw = (request.META.get(COMPANY_HEADER) or "").strip()
    if not raw:
        raise InputValidationError("X-Company-ID header is required")

    qs = Company.objects.filter(is_active=True)
    company = (
        qs.filter(pk=int(raw)).first() if raw.isdigit() else qs.filter(code=raw.upper()).first()
    )

    user = getattr(request, "user", None)
    if company is None or not company.has_member(user):
        raise NotFoundError(f"Company {raw} not found")

    request_id = (request.META.get("HTTP_X_REQUEST_ID") or "").strip() or None
    return build_context(company=company, user=user, request_id=request_id)
