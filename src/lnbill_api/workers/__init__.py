"""Background workers."""

from .payment_reconciliation import PaymentReconciliationWorker

__all__ = ["PaymentReconciliationWorker"]
