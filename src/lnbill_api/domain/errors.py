"""Error taxonomy shared by the payment coordinator and the reconciliation worker.

Errors are exception classes so the HTTP layer can raise them, but the core
never raises them: every operation hands them back inside ``Err``.
"""

from __future__ import annotations

from enum import Enum


class ErrorLevel(str, Enum):
    """Severity tier used for observability triage only."""

    INFO = "info"
    WARN = "warn"
    CRITICAL = "critical"


class DomainError(Exception):
    """Base class for every error kind surfaced by the service."""

    level: ErrorLevel = ErrorLevel.INFO

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "")
        self.message = message or ""

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.kind}(message={self.message!r}, level={self.level.value!r})"

    def as_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message, "level": self.level.value}


# Validation


class ValidationError(DomainError):
    pass


class InvalidStatusString(ValidationError):
    pass


class InvalidInvoiceAmount(ValidationError):
    pass


# Bill semantics and issuer integration


class BillError(DomainError):
    pass


class BillOverdue(BillError):
    pass


class BillAlreadyPaid(BillError):
    pass


class BillExpired(BillError):
    pass


class BillNoUpdateNeeded(BillError):
    pass


class BillNotFound(BillError):
    pass


class BillStatusUpdateFailed(BillError):
    pass


class InvalidBill(BillError):
    level = ErrorLevel.CRITICAL


class BillIssuerSettingsNotFound(BillError):
    pass


class InvalidIssuerSettings(BillError):
    level = ErrorLevel.CRITICAL


class UnknownIssuerError(BillError):
    level = ErrorLevel.CRITICAL


# Payment record store


class StoreError(DomainError):
    pass


class RecordNotFound(StoreError):
    pass


class RecordNotPersisted(StoreError):
    level = ErrorLevel.CRITICAL


class RecordNotUpdated(StoreError):
    level = ErrorLevel.CRITICAL


class StoreConnectionError(StoreError):
    level = ErrorLevel.CRITICAL


class UnknownStoreError(StoreError):
    level = ErrorLevel.CRITICAL


# Payment provider


class ProviderError(DomainError):
    pass


class InvalidUsername(ProviderError):
    pass


class InvoiceRequestRejected(ProviderError):
    pass


class InvalidInvoice(ProviderError):
    level = ErrorLevel.CRITICAL


class InvalidProviderStatus(ProviderError):
    level = ErrorLevel.CRITICAL


class UnknownProviderError(ProviderError):
    level = ErrorLevel.CRITICAL


__all__ = [
    "BillAlreadyPaid",
    "BillError",
    "BillExpired",
    "BillIssuerSettingsNotFound",
    "BillNoUpdateNeeded",
    "BillNotFound",
    "BillOverdue",
    "BillStatusUpdateFailed",
    "DomainError",
    "ErrorLevel",
    "InvalidBill",
    "InvalidInvoice",
    "InvalidInvoiceAmount",
    "InvalidIssuerSettings",
    "InvalidProviderStatus",
    "InvalidStatusString",
    "InvalidUsername",
    "InvoiceRequestRejected",
    "ProviderError",
    "RecordNotFound",
    "RecordNotPersisted",
    "RecordNotUpdated",
    "StoreConnectionError",
    "StoreError",
    "UnknownIssuerError",
    "UnknownProviderError",
    "UnknownStoreError",
    "ValidationError",
]
