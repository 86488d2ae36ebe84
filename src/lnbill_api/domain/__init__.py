"""Domain vocabulary for bill payments."""

from .bill import Bill, BillIssuer, WalletAmount, are_bill_details_equal, bill_identifier
from .bill_payment import BillPayment
from .results import Err, Ok, Result
from .status import BillStatus, InvoiceStatus, WalletCurrency, parse_bill_status, parse_invoice_status

__all__ = [
    "Bill",
    "BillIssuer",
    "BillPayment",
    "BillStatus",
    "Err",
    "InvoiceStatus",
    "Ok",
    "Result",
    "WalletAmount",
    "WalletCurrency",
    "are_bill_details_equal",
    "bill_identifier",
    "parse_bill_status",
    "parse_invoice_status",
]
