import pytest
from pydantic import ValidationError

from conftest import make_bill
from lnbill_api.domain.status import BillStatus, WalletCurrency
from lnbill_api.schemas.bill import BillSnapshot, deserialize_bill, serialize_bill


def test_serialize_bill_writes_amount_as_string() -> None:
    payload = serialize_bill(make_bill(amount=2_100_000_000_000_000, currency=WalletCurrency.BTC))

    assert payload == {
        "reference": "ref-1",
        "period": "period-1",
        "description": "Electricity bill",
        "amount": {"amount": "2100000000000000", "currency": "BTC"},
        "status": "PENDING",
    }


def test_deserialize_bill_accepts_legacy_documents() -> None:
    bill = deserialize_bill(
        {
            "reference": "ref-9",
            "period": "2026-10",
            "amount": {"amount": 1250, "currency": "USD"},
            "status": "paid",
        }
    )

    assert bill.reference == "ref-9"
    assert bill.description == ""
    assert bill.amount.amount == 1250
    assert bill.amount.currency is WalletCurrency.USD
    assert bill.status is BillStatus.PAID


def test_snapshot_round_trip_preserves_bill() -> None:
    bill = make_bill(status=BillStatus.OVERDUE)
    assert deserialize_bill(serialize_bill(bill)) == bill


def test_snapshot_rejects_unknown_currency() -> None:
    with pytest.raises(ValidationError):
        BillSnapshot.model_validate(
            {
                "reference": "ref-1",
                "period": "period-1",
                "amount": {"amount": "10", "currency": "EUR"},
                "status": "PENDING",
            }
        )
