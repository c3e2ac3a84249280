# companies/api.py

"""
TENANT-SCOPED API BASE

Every ledger endpoint acts for exactly one company, chosen by the
X-Company-ID header. The request context is built once per request and
stored on the request so the error handler can report its request id.

Permission model:
- IsAuthenticated (JWT) for everyone
- membership of the company (superuser override)
- optional Django model permission per HTTP method (required_permissions)
"""

from __future__ import annotations

from rest_framework.exceptions import PermissionDenied
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated

from companies.context import RequestContext, context_from_request


class CompanyScopedMixin:
    permission_classes = [IsAuthenticated]

    # {"POST": "accounting.add_journalvoucher"}; methods not listed only need membership
    required_permissions: dict[str, str] = {}

    def get_ledger_context(self) -> RequestContext:
        ctx = getattr(self.request, "ledger_context", None)
        if ctx is None:
            ctx = context_from_request(self.request)
            self.request.ledger_context = ctx
        return ctx

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.get_ledger_context()

        perm = self.required_permissions.get(request.method)
        if perm and not request.user.has_perm(perm):
            raise PermissionDenied("You do not have permission to perform this action.")


class CompanyScopedAPIView(CompanyScopedMixin, GenericAPIView):
    pass
