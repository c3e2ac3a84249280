# companies/tests/test_context.py

from __future__ import annotations

from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory, TestCase

from accounting.models.account import Account
from accounting.services.account_resolver import seed_default_chart
from accounting.services.exceptions import InputValidationError, NotFoundError
from companies.context import build_context, context_from_request
from companies.testing import make_company, make_user


class BuildContextTests(TestCase):
    def test_request_id_is_generated_when_missing(self):
        company = make_company("ACME", seed_chart=False)

        first = build_context(company=company)
        second = build_context(company=company)

        self.assertEqual(first.company_id, company.pk)
        self.assertIsNone(first.user_id)
        self.assertTrue(first.request_id)
        self.assertNotEqual(first.request_id, second.request_id)

    def test_inactive_company_is_rejected(self):
        company = make_company("ACME", seed_chart=False)
        company.is_active = False
        company.save()

        with self.assertRaises(InputValidationError):
            build_context(company=company)

    def test_missing_company_is_rejected(self):
        with self.assertRaises(InputValidationError):
            build_context(company=None)


class ContextFromRequestTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.company = make_company("ACME", seed_chart=False)
        self.user = make_user("clerk", company=self.company)

    def _request(self, user, **headers):
        request = self.factory.get("/api/", **headers)
        request.user = user
        return request

    def test_member_resolves_by_id_or_code(self):
        by_id = context_from_request(
            self._request(self.user, HTTP_X_COMPANY_ID=str(self.company.pk), HTTP_X_REQUEST_ID="req-42")
        )
        by_code = context_from_request(self._request(self.user, HTTP_X_COMPANY_ID="acme"))

        self.assertEqual(by_id.company, self.company)
        self.assertEqual(by_id.request_id, "req-42")
        self.assertEqual(by_code.company, self.company)
        self.assertEqual(by_code.user_id, self.user.pk)

    def test_header_is_required(self):
        with self.assertRaises(InputValidationError):
            context_from_request(self._request(self.user))

    def test_non_member_gets_not_found(self):
        outsider = make_user("outsider")

        with self.assertRaises(NotFoundError):
            context_from_request(self._request(outsider, HTTP_X_COMPANY_ID="ACME"))

    def test_anonymous_user_gets_not_found(self):
        with self.assertRaises(NotFoundError):
            context_from_request(self._request(AnonymousUser(), HTTP_X_COMPANY_ID="ACME"))


class SeedChartTests(TestCase):
    def test_seeding_is_idempotent(self):
        company = make_company("ACME", seed_chart=False)

        seed_default_chart(company)
        seed_default_chart(company)

        self.assertEqual(Account.objects.filter(company=company, code="1100").count(), 1)
        self.assertTrue(
            Account.objects.filter(company=company, system_role=Account.SystemRole.WHT_PAYABLE).exists()
        )
