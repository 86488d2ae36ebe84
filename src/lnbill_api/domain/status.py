"""Invoice and bill lifecycle vocabularies."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from .errors import InvalidStatusString
from .results import Err, Ok, Result


class InvoiceStatus(str, Enum):
    """Lightning invoice lifecycle as reported by the payment provider."""

    EXPIRED = "EXPIRED"
    PENDING = "PENDING"
    PAID = "PAID"


class BillStatus(str, Enum):
    """Bill lifecycle as reported by the issuer."""

    OVERDUE = "OVERDUE"
    PENDING = "PENDING"
    PAID = "PAID"


class WalletCurrency(str, Enum):
    BTC = "BTC"
    USD = "USD"


E = TypeVar("E", bound=Enum)


def _parse(enum_cls: type[E], value: object) -> Result[E]:
    if isinstance(value, str):
        candidate = value.upper()
        for member in enum_cls:
            if member.value == candidate:
                return Ok(member)
    return Err(InvalidStatusString(f"{enum_cls.__name__}: {value!r}"))


def parse_invoice_status(value: object) -> Result[InvoiceStatus]:
    return _parse(InvoiceStatus, value)


def parse_bill_status(value: object) -> Result[BillStatus]:
    return _parse(BillStatus, value)


__all__ = [
    "BillStatus",
    "InvoiceStatus",
    "WalletCurrency",
    "parse_bill_status",
    "parse_invoice_status",
]
