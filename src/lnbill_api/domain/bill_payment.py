"""Reconciliation record tracking one bill's invoice and payment lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from .bill import Bill
from .status import InvoiceStatus


@dataclass(slots=True)
class BillPayment:
    domain: str
    reference: str
    period: str
    invoice: str
    invoice_status: InvoiceStatus
    pending_response: Bill
    paid_response: Bill | None = None
    notification_sent_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.domain, self.reference, self.period)

    def copy(self, **changes: object) -> "BillPayment":
        return replace(self, **changes)


__all__ = ["BillPayment"]
