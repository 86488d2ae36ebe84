from .lnurl import create_bill_metadata, create_hash, create_lnurl_metadata, decode_invoice_amount

__all__ = ["create_bill_metadata", "create_hash", "create_lnurl_metadata", "decode_invoice_amount"]
