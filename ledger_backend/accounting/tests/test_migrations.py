# accounting/tests/test_migrations.py

from __future__ import annotations

from io import StringIO

from django.core.management import call_command
from django.db import connection
from django.test import TestCase

LEDGER_APPS = ("companies", "accounting", "inventory", "production", "sales", "purchases")


def _constraint_names(table: str) -> set[str]:
    with connection.cursor() as cursor:
        return set(connection.introspection.get_constraints(cursor, table))


class MigrationStateTests(TestCase):
    """
    GUARANTEES:
    - the shipped migrations describe exactly the current models
    - the ledger's named database constraints exist after migrating
    """

    def test_models_have_no_unmigrated_changes(self):
        out = StringIO()
        try:
            call_command("makemigrations", *LEDGER_APPS, check=True, dry_run=True, stdout=out)
        except SystemExit:
            self.fail(f"Models changed without a migration:\n{out.getvalue()}")

    def test_voucher_constraints_exist(self):
        names = _constraint_names("accounting_journalvoucher")
        self.assertIn("uniq_voucher_company_number", names)
        self.assertIn("chk_voucher_totals_balanced", names)

        self.assertIn("uniq_voucher_sequence_scope", _constraint_names("accounting_vouchersequence"))
        self.assertIn("chk_voucher_line_one_side", _constraint_names("accounting_journalvoucherline"))

    def test_stock_event_constraints_exist(self):
        names = _constraint_names("inventory_stockevent")
        self.assertIn("chk_stock_event_delta_non_zero", names)
        self.assertIn("stock_event_item_replay_idx", names)

    def test_payment_voucher_table_follows_purchases(self):
        self.assertIn("uniq_payment_voucher_company_number", _constraint_names("accounting_paymentvoucher"))
