# companies/apps.py

"""
COMPANIES APP CONFIG

Tenants of the ledger. Every business row in the other apps is scoped
to exactly one Company.
"""

from django.apps import AppConfig


class CompaniesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "companies"
    verbose_name = "Companies"
