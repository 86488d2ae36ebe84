import hashlib

import pytest

from conftest import make_bill
from lnbill_api.domain import Err, Ok
from lnbill_api.domain.errors import InvalidInvoiceAmount
from lnbill_api.utils import create_bill_metadata, create_hash, create_lnurl_metadata, decode_invoice_amount


def test_lnurl_metadata_is_compact_json() -> None:
    metadata = create_lnurl_metadata(description="Water bill", identifier="ref-1@billing.example.com")
    assert metadata == '[["text/plain","Water bill"],["text/identifier","ref-1@billing.example.com"]]'


def test_bill_metadata_uses_reference_at_domain() -> None:
    metadata = create_bill_metadata("billing.example.com", make_bill(description="Électricité"))
    assert metadata == '[["text/plain","Électricité"],["text/identifier","ref-1@billing.example.com"]]'


def test_create_hash_is_sha256_hex() -> None:
    data = '[["text/plain","x"]]'
    assert create_hash(data) == hashlib.sha256(data.encode("utf-8")).hexdigest()
    assert len(create_hash(data)) == 64


@pytest.mark.parametrize(
    ("invoice", "expected_msats"),
    [
        ("lnbc10u1pjexample", 1_000_000),
        ("lnbc2500u1pvjluezpp5qqqsyqcyq5rqwzqfqqqsyqcyq5rqwzqfqqqsyqcyq5rqwzqfqypq", 250_000_000),
        ("lnbc20m1pvjluezexample", 2_000_000_000),
        ("lntb1n1pexample", 100),
        ("lnbcrt50n1pexample", 5_000),
        ("lntbs250u1pexample", 25_000_000),
        ("lntb20m1pvjluezhp58yjmdan79s6qqdhdzgynm4zwqd5d7xmw5fk98klysy043l2ahrqs", 2_000_000_000),
        ("lnbc10p1pexample", 1),
        ("LIGHTNING:LNBC10U1PJEXAMPLE", 1_000_000),
        ("lnbc11pjexample", 100_000_000_000),
    ],
)
def test_decode_invoice_amount(invoice: str, expected_msats: int) -> None:
    assert decode_invoice_amount(invoice) == Ok(expected_msats)


@pytest.mark.parametrize(
    "invoice",
    [
        "invoice-1",
        "lnbc1pvjluezexample",
        "lnbc15p1pexample",
        "bc10u1pexample",
        "lnxy10u1pexample",
        "lnbc10x1pexample",
    ],
)
def test_decode_invoice_amount_rejects_unreadable_invoices(invoice: str) -> None:
    result = decode_invoice_amount(invoice)
    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidInvoiceAmount)
