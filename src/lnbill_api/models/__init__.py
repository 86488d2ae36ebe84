"""Database models for the service."""

from .bill_payment import BillPaymentRecord

__all__ = ["BillPaymentRecord"]
