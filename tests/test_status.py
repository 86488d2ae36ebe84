from lnbill_api.domain import Err, Ok, parse_bill_status, parse_invoice_status
from lnbill_api.domain.errors import ErrorLevel, InvalidStatusString
from lnbill_api.domain.status import BillStatus, InvoiceStatus


def test_parse_invoice_status_is_case_insensitive() -> None:
    assert parse_invoice_status("paid") == Ok(InvoiceStatus.PAID)
    assert parse_invoice_status("Expired") == Ok(InvoiceStatus.EXPIRED)


def test_parse_status_does_not_trim_whitespace() -> None:
    assert isinstance(parse_invoice_status(" paid "), Err)
    assert isinstance(parse_bill_status("PENDING\n"), Err)


def test_parse_bill_status_accepts_overdue() -> None:
    result = parse_bill_status("OVERDUE")
    assert isinstance(result, Ok)
    assert result.value is BillStatus.OVERDUE


def test_parse_status_rejects_unknown_values() -> None:
    result = parse_invoice_status("settled")
    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidStatusString)
    assert result.kind == "InvalidStatusString"
    assert result.level is ErrorLevel.INFO

    assert isinstance(parse_bill_status(None), Err)
    assert isinstance(parse_bill_status("OVERDUE!"), Err)


def test_invoice_status_does_not_include_overdue() -> None:
    assert isinstance(parse_invoice_status("OVERDUE"), Err)
