# accounting/tests/test_ledger_poster.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.exceptions import (
    InputValidationError,
    InvalidStateError,
    NotFoundError,
    UnbalancedVoucherError,
)
from accounting.services.ledger_poster import (
    approve_document_voucher,
    approve_voucher,
    delete_draft_voucher,
    is_balanced,
    post_draft_voucher,
    post_voucher,
    reject_document_voucher,
    reject_voucher,
    reverse_document_voucher,
    reverse_voucher,
)
from companies.testing import account, make_company, make_context

Role = Account.SystemRole
Status = JournalVoucher.Status


class LedgerPosterTestBase(TestCase):
    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.cash = account(self.company, Role.CASH)
        self.bank = account(self.company, Role.BANK)
        self.revenue = account(self.company, Role.SALES_REVENUE)
        self.expense = Account.objects.get(company=self.company, code="6000")

    def _post(self, *, amount="100.00", entry_date=date(2024, 3, 1), **kwargs):
        return post_voucher(
            context=self.ctx,
            narration="Cash sale",
            lines=[
                {"account": self.cash, "debit": amount},
                {"account": self.revenue, "credit": amount},
            ],
            entry_date=entry_date,
            **kwargs,
        )


class BalanceRuleTests(LedgerPosterTestBase):
    """
    GUARANTEES:
    - Σ debit == Σ credit within one cent, otherwise nothing is written
    - every line has exactly one positive side
    """

    def test_split_credit_balances(self):
        voucher = post_voucher(
            context=self.ctx,
            narration="Split receipt",
            lines=[
                {"account": self.cash, "debit": 100},
                {"account": self.revenue, "credit": 60},
                {"account": self.bank, "credit": 40},
            ],
            entry_date=date(2024, 3, 1),
        )

        self.assertEqual(voucher.status, Status.POSTED)
        self.assertEqual(voucher.total_debits, Decimal("100.00"))
        self.assertEqual(voucher.total_credits, Decimal("100.00"))
        self.assertEqual(voucher.lines.count(), 3)
        self.assertEqual(
            list(voucher.lines.order_by("line_no").values_list("line_no", flat=True)),
            [1, 2, 3],
        )

    def test_one_cent_short_is_unbalanced_and_writes_nothing(self):
        with self.assertRaises(UnbalancedVoucherError) as cm:
            post_voucher(
                context=self.ctx,
                narration="Split receipt",
                lines=[
                    {"account": self.cash, "debit": 100},
                    {"account": self.revenue, "credit": 60},
                    {"account": self.bank, "credit": "39.99"},
                ],
            )

        self.assertEqual(cm.exception.total_debits, Decimal("100.00"))
        self.assertEqual(cm.exception.total_credits, Decimal("99.99"))
        self.assertFalse(JournalVoucher.objects.exists())
        self.assertFalse(JournalVoucherLine.objects.exists())

    def test_is_balanced_uses_one_cent_tolerance(self):
        self.assertTrue(is_balanced(Decimal("100.00"), Decimal("100.00")))
        self.assertFalse(is_balanced(Decimal("100.00"), Decimal("99.99")))

    def test_line_with_both_sides_is_rejected(self):
        with self.assertRaises(InputValidationError):
            post_voucher(
                context=self.ctx,
                narration="Bad",
                lines=[
                    {"account": self.cash, "debit": 10, "credit": 10},
                    {"account": self.revenue, "credit": 10},
                ],
            )

    def test_negative_amount_is_rejected(self):
        with self.assertRaises(InputValidationError):
            post_voucher(
                context=self.ctx,
                narration="Bad",
                lines=[
                    {"account": self.cash, "debit": -10},
                    {"account": self.revenue, "credit": -10},
                ],
            )

    def test_single_line_voucher_is_rejected(self):
        with self.assertRaises(InputValidationError):
            post_voucher(
                context=self.ctx,
                narration="Bad",
                lines=[{"account": self.cash, "debit": 10}],
            )

    def test_sub_cent_amount_rounds_to_zero_and_is_rejected(self):
        with self.assertRaises(InputValidationError):
            post_voucher(
                context=self.ctx,
                narration="Bad",
                lines=[
                    {"account": self.cash, "debit": "0.004"},
                    {"account": self.revenue, "credit": "0.004"},
                ],
            )

    def test_inactive_account_is_rejected(self):
        Account.objects.filter(pk=self.revenue.pk).update(is_active=False)
        self.revenue.refresh_from_db()

        with self.assertRaises(InputValidationError):
            self._post()

    def test_duplicate_reference_is_rejected(self):
        self._post(source=JournalVoucher.Source.SALES_INVOICE, reference_type="SALES_INVOICE", reference_id="7")

        with self.assertRaises(InvalidStateError):
            self._post(source=JournalVoucher.Source.SALES_INVOICE, reference_type="SALES_INVOICE", reference_id="7")

        self.assertEqual(JournalVoucher.objects.count(), 1)


class VoucherNumberingTests(LedgerPosterTestBase):
    def test_numbers_follow_prefix_year_sequence(self):
        first = self._post()
        second = self._post()
        sale = self._post(source=JournalVoucher.Source.SALES_INVOICE)

        self.assertEqual(first.voucher_number, "JV-2024-00001")
        self.assertEqual(second.voucher_number, "JV-2024-00002")
        self.assertEqual(sale.voucher_number, "SI-2024-00001")

    def test_sequence_restarts_per_year(self):
        self._post(entry_date=date(2024, 12, 31))
        nxt = self._post(entry_date=date(2025, 1, 1))
        self.assertEqual(nxt.voucher_number, "JV-2025-00001")

    def test_sequences_are_independent_per_company(self):
        other = make_company("OTHER")
        other_ctx = make_context(other)

        self._post()
        self._post()
        theirs = post_voucher(
            context=other_ctx,
            narration="Other company",
            lines=[
                {"account": account(other, Role.CASH), "debit": 5},
                {"account": account(other, Role.SALES_REVENUE), "credit": 5},
            ],
            entry_date=date(2024, 3, 1),
        )

        self.assertEqual(theirs.voucher_number, "JV-2024-00001")

    def test_numbers_are_strictly_increasing(self):
        numbers = [self._post().voucher_number for _ in range(5)]
        values = [int(n.rsplit("-", 1)[1]) for n in numbers]
        self.assertEqual(values, sorted(values))
        self.assertEqual(len(set(values)), 5)


class TenantIsolationTests(LedgerPosterTestBase):
    def test_account_of_another_company_is_rejected(self):
        other = make_company("OTHER")

        with self.assertRaises(InputValidationError):
            post_voucher(
                context=self.ctx,
                narration="Cross tenant",
                lines=[
                    {"account": self.cash, "debit": 10},
                    {"account": account(other, Role.SALES_REVENUE), "credit": 10},
                ],
            )

    def test_voucher_of_another_company_is_not_found(self):
        voucher = self._post()
        other_ctx = make_context(make_company("OTHER"))

        with self.assertRaises(NotFoundError):
            approve_voucher(context=other_ctx, voucher_id=voucher.pk)


class VoucherTransitionTests(LedgerPosterTestBase):
    def test_approve_is_idempotent(self):
        voucher = self._post()

        approve_voucher(context=self.ctx, voucher_id=voucher.pk)
        first_changed = JournalVoucher.objects.get(pk=voucher.pk).status_changed_at
        again = approve_voucher(context=self.ctx, voucher_id=voucher.pk)

        self.assertEqual(again.status, Status.APPROVED)
        self.assertEqual(JournalVoucher.objects.get(pk=voucher.pk).status_changed_at, first_changed)

    def test_rejecting_a_posted_voucher_posts_a_reversal(self):
        voucher = self._post()

        reject_voucher(context=self.ctx, voucher_id=voucher.pk, reason="wrong account")

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Status.REJECTED)
        self.assertEqual(voucher.rejection_reason, "wrong account")

        reversal = JournalVoucher.objects.get(reversal_of=voucher)
        self.assertEqual(reversal.source, JournalVoucher.Source.REVERSAL)
        cash_line = reversal.lines.get(account=self.cash)
        self.assertEqual(cash_line.credit, Decimal("100.00"))
        self.assertEqual(cash_line.debit, Decimal("0.00"))

    def test_rejecting_twice_is_a_noop(self):
        voucher = self._post()
        reject_voucher(context=self.ctx, voucher_id=voucher.pk)
        reject_voucher(context=self.ctx, voucher_id=voucher.pk)

        self.assertEqual(JournalVoucher.objects.filter(reversal_of=voucher).count(), 1)

    def test_approved_voucher_cannot_be_rejected(self):
        voucher = self._post()
        approve_voucher(context=self.ctx, voucher_id=voucher.pk)

        with self.assertRaises(InvalidStateError):
            reject_voucher(context=self.ctx, voucher_id=voucher.pk)

    def test_rejected_voucher_cannot_be_approved(self):
        voucher = self._post()
        reject_voucher(context=self.ctx, voucher_id=voucher.pk)

        with self.assertRaises(InvalidStateError):
            approve_voucher(context=self.ctx, voucher_id=voucher.pk)


class ReversalTests(LedgerPosterTestBase):
    def test_reversal_swaps_every_line(self):
        voucher = self._post(amount="250.00")

        reversal = reverse_voucher(context=self.ctx, voucher_id=voucher.pk, entry_date=date(2024, 4, 1))

        self.assertEqual(reversal.reversal_of_id, voucher.pk)
        self.assertEqual(reversal.voucher_number, "RV-2024-00001")
        self.assertEqual(reversal.total_debits, Decimal("250.00"))
        self.assertEqual(reversal.lines.get(account=self.revenue).debit, Decimal("250.00"))
        self.assertEqual(reversal.lines.get(account=self.cash).credit, Decimal("250.00"))

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Status.POSTED)

    def test_reversing_twice_is_rejected(self):
        voucher = self._post()
        reverse_voucher(context=self.ctx, voucher_id=voucher.pk)

        with self.assertRaises(InvalidStateError):
            reverse_voucher(context=self.ctx, voucher_id=voucher.pk)

        self.assertEqual(JournalVoucher.objects.filter(reversal_of=voucher).count(), 1)

    def test_reversal_cannot_be_reversed(self):
        voucher = self._post()
        reversal = reverse_voucher(context=self.ctx, voucher_id=voucher.pk)

        with self.assertRaises(InvalidStateError):
            reverse_voucher(context=self.ctx, voucher_id=reversal.pk)


class DocumentVoucherTransitionTests(LedgerPosterTestBase):
    """
    Vouchers generated by a business document only change through that document.
    """

    DOCUMENT_SOURCES = [
        value for value, _ in JournalVoucher.Source.choices
        if value not in (JournalVoucher.Source.MANUAL, JournalVoucher.Source.REVERSAL)
    ]

    def test_direct_transitions_refuse_every_document_source(self):
        for source in self.DOCUMENT_SOURCES:
            with self.subTest(source=source):
                voucher = self._post(source=source)

                for action in (approve_voucher, reject_voucher, reverse_voucher):
                    with self.assertRaises(InvalidStateError) as caught:
                        action(context=self.ctx, voucher_id=voucher.pk)
                    self.assertIn("use the document's cancel/approve", str(caught.exception))

                voucher.refresh_from_db()
                self.assertEqual(voucher.status, Status.POSTED)
                self.assertFalse(JournalVoucher.objects.filter(reversal_of=voucher).exists())

    def test_document_helpers_act_on_matching_source(self):
        voucher = self._post(source=JournalVoucher.Source.PAYMENT_VOUCHER)

        approve_document_voucher(
            context=self.ctx, voucher_id=voucher.pk, source=JournalVoucher.Source.PAYMENT_VOUCHER
        )

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Status.APPROVED)

    def test_document_helpers_refuse_other_sources(self):
        voucher = self._post(source=JournalVoucher.Source.SALES_INVOICE)

        with self.assertRaises(InvalidStateError):
            reverse_document_voucher(
                context=self.ctx, voucher_id=voucher.pk, source=JournalVoucher.Source.PRODUCTION
            )
        with self.assertRaises(InvalidStateError):
            reject_document_voucher(
                context=self.ctx, voucher_id=voucher.pk, source=JournalVoucher.Source.PAYMENT_VOUCHER
            )

        self.assertFalse(JournalVoucher.objects.filter(reversal_of=voucher).exists())

    def test_reverse_document_voucher_uses_reversal_source(self):
        voucher = self._post(source=JournalVoucher.Source.SALES_INVOICE)

        reversal = reverse_document_voucher(
            context=self.ctx,
            voucher_id=voucher.pk,
            source=JournalVoucher.Source.SALES_INVOICE,
            reversal_source=JournalVoucher.Source.SALES_REVERSAL,
        )

        self.assertEqual(reversal.source, JournalVoucher.Source.SALES_REVERSAL)
        self.assertEqual(reversal.reversal_of_id, voucher.pk)


class DraftVoucherTests(LedgerPosterTestBase):
    def _draft(self, kind="PAYMENT", amount="75.50"):
        return post_voucher(
            context=self.ctx,
            narration="Stationery",
            status=Status.DRAFT,
            entry_date=date(2024, 5, 2),
            intent={
                "kind": kind,
                "account": self.expense,
                "counter_account": self.cash,
                "amount": amount,
                "memo": "printer paper",
            },
        )

    def test_draft_has_no_lines_until_posted(self):
        draft = self._draft()

        self.assertEqual(draft.status, Status.DRAFT)
        self.assertFalse(draft.lines.exists())
        self.assertEqual(draft.intent.amount, Decimal("75.50"))

    def test_posting_a_payment_draft_materializes_intent(self):
        draft = self._draft()

        posted = post_draft_voucher(context=self.ctx, voucher_id=draft.pk)

        self.assertEqual(posted.status, Status.POSTED)
        self.assertEqual(posted.lines.get(account=self.expense).debit, Decimal("75.50"))
        self.assertEqual(posted.lines.get(account=self.cash).credit, Decimal("75.50"))

    def test_posting_an_income_draft_debits_the_counter_account(self):
        draft = self._draft(kind="INCOME")

        posted = post_draft_voucher(context=self.ctx, voucher_id=draft.pk)

        self.assertEqual(posted.lines.get(account=self.cash).debit, Decimal("75.50"))
        self.assertEqual(posted.lines.get(account=self.expense).credit, Decimal("75.50"))

    def test_draft_cannot_be_posted_twice(self):
        draft = self._draft()
        post_draft_voucher(context=self.ctx, voucher_id=draft.pk)

        with self.assertRaises(InvalidStateError):
            post_draft_voucher(context=self.ctx, voucher_id=draft.pk)

    def test_draft_without_intent_is_rejected(self):
        with self.assertRaises(InputValidationError):
            post_voucher(context=self.ctx, narration="No intent", status=Status.DRAFT)

    def test_draft_can_be_deleted(self):
        draft = self._draft()

        number = delete_draft_voucher(context=self.ctx, voucher_id=draft.pk)

        self.assertEqual(number, draft.voucher_number)
        self.assertFalse(JournalVoucher.objects.filter(pk=draft.pk).exists())

    def test_rejected_draft_can_be_deleted(self):
        draft = self._draft()
        reject_voucher(context=self.ctx, voucher_id=draft.pk)

        delete_draft_voucher(context=self.ctx, voucher_id=draft.pk)
        self.assertFalse(JournalVoucher.objects.filter(pk=draft.pk).exists())

    def test_posted_voucher_cannot_be_deleted(self):
        voucher = self._post()

        with self.assertRaises(InvalidStateError):
            delete_draft_voucher(context=self.ctx, voucher_id=voucher.pk)


class ImmutabilityTests(LedgerPosterTestBase):
    def test_lines_cannot_be_edited(self):
        voucher = self._post()
        line = voucher.lines.first()
        line.description = "changed"

        with self.assertRaises(ValidationError):
            line.save()

    def test_lines_cannot_be_deleted(self):
        voucher = self._post()

        with self.assertRaises(ValidationError):
            voucher.lines.first().delete()

    def test_voucher_narration_cannot_be_edited(self):
        voucher = self._post()
        voucher.narration = "rewritten"

        with self.assertRaises(ValidationError):
            voucher.save()
