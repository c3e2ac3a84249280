# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for sales app models.
"""

from .customer import Customer
from .customer_payment import CustomerPayment, PaymentAllocation
from .sales_invoice import SalesInvoice
from .sales_invoice_item import SalesInvoiceItem

__all__ = [
    "Customer",
    "SalesInvoice",
    "SalesInvoiceItem",
    "CustomerPayment",
    "PaymentAllocation",
]
