# accounting/apps.py

"""
ACCOUNTING APP CONFIG

Chart-of-accounts directory, the ledger poster (the only writer of journal
vouchers), voucher sequences, payment vouchers and opening balances.
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
