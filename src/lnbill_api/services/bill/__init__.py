"""Bill issuer integration and invoice issuance."""

from .issuer import BillService, parse_bill_payload
from .payments import PaymentCoordinator, provider_username

__all__ = ["BillService", "PaymentCoordinator", "parse_bill_payload", "provider_username"]
