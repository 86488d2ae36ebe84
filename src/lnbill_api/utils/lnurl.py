"""LNURL-pay helpers: metadata documents, description hashes and invoice amounts."""

from __future__ import annotations

import hashlib
import json
import re
from typing import TYPE_CHECKING

from lnbill_api.domain.bill import bill_identifier
from lnbill_api.domain.errors import InvalidInvoiceAmount
from lnbill_api.domain.results import Err, Ok, Result

if TYPE_CHECKING:
    from lnbill_api.domain.bill import Bill

_MSATS_PER_BTC = 100_000_000_000
_MULTIPLIER_MSATS = {
    "": _MSATS_PER_BTC,
    "m": _MSATS_PER_BTC // 1_000,
    "u": _MSATS_PER_BTC // 1_000_000,
    "n": _MSATS_PER_BTC // 1_000_000_000,
}
# BOLT11 human-readable part: "ln" + network prefix + optional amount + multiplier.
# Networks: mainnet, testnet, signet and regtest.
_HRP_PATTERN = re.compile(r"^ln(bcrt|bc|tbs|tb)(\d+)?([munp]?)$")


def create_lnurl_metadata(*, description: str, identifier: str) -> str:
    """Serialise LUD-06 metadata exactly as wallets hash it."""

    return json.dumps(
        [["text/plain", f"{description}"], ["text/identifier", f"{identifier}"]],
        separators=(",", ":"),
        ensure_ascii=False,
    )


def create_hash(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def create_bill_metadata(domain: str, bill: "Bill") -> str:
    """LNURL-pay metadata document describing ``bill`` for ``domain``."""

    return create_lnurl_metadata(
        description=bill.description,
        identifier=bill_identifier(domain, bill.reference),
    )


def decode_invoice_amount(invoice: str) -> Result[int]:
    """Return the payable amount of a BOLT11 invoice in millisatoshis.

    Only the human-readable part is read; signatures and tagged fields are not
    inspected.
    """

    request = invoice.strip().lower()
    if request.startswith("lightning:"):
        request = request[len("lightning:"):]

    separator = request.rfind("1")
    if separator <= 0:
        return Err(InvalidInvoiceAmount("Missing bech32 separator"))

    match = _HRP_PATTERN.match(request[:separator])
    if match is None:
        return Err(InvalidInvoiceAmount("Unrecognised invoice prefix"))

    _, digits, multiplier = match.groups()
    if not digits:
        return Err(InvalidInvoiceAmount("Invoice does not carry an amount"))

    amount = int(digits)
    if multiplier == "p":
        if amount % 10:
            return Err(InvalidInvoiceAmount("Pico amount is not a whole millisatoshi"))
        return Ok(amount // 10)
    return Ok(amount * _MULTIPLIER_MSATS[multiplier])


__all__ = ["create_bill_metadata", "create_hash", "create_lnurl_metadata", "decode_invoice_amount"]
