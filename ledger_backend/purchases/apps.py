# purchases/apps.py

"""
PURCHASES APP CONFIG

Suppliers, goods receipts (GRN), supplier bills and bill payments.
"""

from django.apps import AppConfig


class PurchasesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "purchases"
    verbose_name = "Purchases"
