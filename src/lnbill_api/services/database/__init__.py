"""Persistence adapters."""

from .bill_payment import (
    DEFAULT_PAGE_SIZE,
    BillPaymentRepository,
    PendingCursor,
    classify_store_error,
    pending_cursor,
)

__all__ = ["DEFAULT_PAGE_SIZE", "BillPaymentRepository", "PendingCursor", "classify_store_error", "pending_cursor"]
