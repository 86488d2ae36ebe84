"""Pydantic schemas for bill snapshots stored on payment records and returned by the API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from lnbill_api.domain.bill import Bill, BillIssuer, WalletAmount
from lnbill_api.domain.status import BillStatus, WalletCurrency


class WalletAmountSnapshot(BaseModel):
    """Amount written as a decimal string so JSON never truncates large integers."""

    model_config = ConfigDict(frozen=True)

    amount: int = Field(..., description="Minor-unit quantity (sats or cents)")
    currency: WalletCurrency

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError("amount must be an integer")
        if isinstance(value, str):
            return int(value.strip())
        return value

    @field_serializer("amount")
    def _serialize_amount(self, value: int) -> str:
        return str(value)


class BillSnapshot(BaseModel):
    """Persisted form of :class:`~lnbill_api.domain.bill.Bill`."""

    model_config = ConfigDict(frozen=True)

    reference: str
    period: str
    description: str = ""
    amount: WalletAmountSnapshot
    status: BillStatus

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @classmethod
    def from_domain(cls, bill: Bill) -> "BillSnapshot":
        return cls(
            reference=bill.reference,
            period=bill.period,
            description=bill.description,
            amount=WalletAmountSnapshot(amount=bill.amount.amount, currency=bill.amount.currency),
            status=bill.status,
        )

    def to_domain(self) -> Bill:
        return Bill(
            reference=self.reference,
            period=self.period,
            description=self.description,
            amount=WalletAmount(currency=self.amount.currency, amount=self.amount.amount),
            status=self.status,
        )


def serialize_bill(bill: Bill) -> dict[str, Any]:
    return BillSnapshot.from_domain(bill).model_dump(mode="json")


def deserialize_bill(payload: dict[str, Any]) -> Bill:
    return BillSnapshot.model_validate(payload).to_domain()


class BillIssuerResponse(BaseModel):
    domain: str
    name: str
    username: str
    bill_server_url: str
    pubkey: str | None = None
    logo_url: str | None = None

    @classmethod
    def from_domain(cls, issuer: BillIssuer) -> "BillIssuerResponse":
        return cls(
            domain=issuer.domain,
            name=issuer.name,
            username=issuer.username,
            bill_server_url=issuer.bill_server_url,
            pubkey=issuer.pubkey,
            logo_url=issuer.logo_url,
        )


__all__ = [
    "BillIssuerResponse",
    "BillSnapshot",
    "WalletAmountSnapshot",
    "deserialize_bill",
    "serialize_bill",
]
