"""Persisted reconciliation records, one per (domain, reference, period)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum as SqlEnum, Index, String, func

from lnbill_api.db.base import Base
from lnbill_api.domain.status import InvoiceStatus


class BillPaymentRecord(Base):
    """Row backing :class:`~lnbill_api.domain.bill_payment.BillPayment`."""

    __tablename__ = "bill_payments"

    domain = Column(String, primary_key=True)
    reference = Column(String, primary_key=True)
    period = Column(String, primary_key=True)
    invoice = Column(String, nullable=False)
    invoice_status = Column(
        SqlEnum(InvoiceStatus, name="invoice_status_enum"),
        nullable=False,
        server_default=InvoiceStatus.PENDING.value,
    )
    pending_response = Column(JSON, nullable=False)
    paid_response = Column(JSON, nullable=True)
    notification_sent_date = Column(DateTime(timezone=True), nullable=True)

    # Client-side default keeps sub-second precision for the pending cursor.
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (Index("ix_bill_payments_status_created_at", "invoice_status", "created_at"),)
