# sales/apps.py

"""
SALES APP CONFIG

Customers, sales invoices (issue / cancel) and customer payment allocation.
"""

from django.apps import AppConfig


class SalesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "sales"
    verbose_name = "Sales"
