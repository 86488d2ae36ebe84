"""Issuer-side bill value types."""

from __future__ import annotations

from dataclasses import dataclass

from .status import BillStatus, WalletCurrency


@dataclass(frozen=True, slots=True)
class WalletAmount:
    """Integer minor-unit quantity (sats for BTC, cents for USD)."""

    currency: WalletCurrency
    amount: int


@dataclass(frozen=True, slots=True)
class Bill:
    """Snapshot of a payable bill as reported by the issuer."""

    reference: str
    period: str
    description: str
    amount: WalletAmount
    status: BillStatus


@dataclass(frozen=True, slots=True)
class BillIssuer:
    """Per-domain issuer settings resolved from the issuer's discovery document."""

    domain: str
    name: str
    username: str
    bill_server_url: str
    pubkey: str | None = None
    logo_url: str | None = None


def bill_identifier(domain: str, reference: str) -> str:
    return f"{reference}@{domain}"


def are_bill_details_equal(first: Bill, second: Bill) -> bool:
    """Compare the terms that an issued invoice is bound to."""

    return (
        first.period == second.period
        and first.reference == second.reference
        and first.amount.amount == second.amount.amount
        and first.amount.currency == second.amount.currency
    )


__all__ = [
    "Bill",
    "BillIssuer",
    "WalletAmount",
    "are_bill_details_equal",
    "bill_identifier",
]
