# accounting/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors for the ledger, valuation, costing and every
orchestrator built on top of them.

Every error is raised inside a transaction.atomic block and propagates to the
caller, so the whole business operation rolls back. The API layer maps each
class to an HTTP status (backend/api_errors.py).

RETRY SEMANTICS:
- InputValidationError / UnbalancedVoucherError: caller's fault, never retry
- InsufficientStockError / InvalidStateError / NotFoundError: business rule,
  retrying the same command gives the same answer
- ConcurrencyConflictError / PersistenceFailureError: transient, the whole
  operation is safe to retry
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service failures."""

    retryable = False


class InputValidationError(LedgerServiceError):
    """Raised when a command payload is malformed or incomplete."""


class UnbalancedVoucherError(InputValidationError):
    """Raised when total debits and total credits of a voucher differ."""

    def __init__(self, total_debits, total_credits):
        self.total_debits = total_debits
        self.total_credits = total_credits
        super().__init__(
            f"Voucher not balanced: debits={total_debits} credits={total_credits}"
        )


class InsufficientStockError(LedgerServiceError):
    """Raised when an outgoing stock event would drive quantity on hand negative."""

    def __init__(self, *, item, requested, available):
        self.item = item
        self.requested = requested
        self.available = available
        label = getattr(item, "sku", None) or getattr(item, "name", None) or item
        super().__init__(
            f"Insufficient stock for {label}: requested {requested}, available {available}"
        )


class InvalidStateError(LedgerServiceError):
    """Raised when a document is not in a state that allows the requested transition."""


class NotFoundError(LedgerServiceError):
    """Raised when a referenced account, item, document or voucher does not exist."""


class AccountResolutionError(NotFoundError):
    """Raised when an expected account cannot be resolved for a company."""


class ConcurrencyConflictError(LedgerServiceError):
    """Raised on lock contention or a lost race for a sequence number."""

    retryable = True


class PersistenceFailureError(LedgerServiceError):
    """Raised on transient storage failures."""

    retryable = True
