from .invoice import (
    SalesInvoiceCancelSerializer,
    SalesInvoiceIssueSerializer,
    SalesInvoiceItemSerializer,
    SalesInvoiceSerializer,
)
from .payment import CustomerPaymentSerializer, PaymentAllocateSerializer

__all__ = [
    "SalesInvoiceSerializer",
    "SalesInvoiceItemSerializer",
    "SalesInvoiceIssueSerializer",
    "SalesInvoiceCancelSerializer",
    "CustomerPaymentSerializer",
    "PaymentAllocateSerializer",
]
