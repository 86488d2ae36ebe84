"""Idempotent invoice issuance for issuer bills."""

from __future__ import annotations

from loguru import logger

from lnbill_api.domain.bill import BillIssuer, are_bill_details_equal, bill_identifier
from lnbill_api.domain.bill_payment import BillPayment
from lnbill_api.domain.errors import BillAlreadyPaid, BillOverdue, RecordNotFound
from lnbill_api.domain.results import Err, Ok, Result
from lnbill_api.domain.status import BillStatus, InvoiceStatus
from lnbill_api.observability.tracing import traced
from lnbill_api.services.database.bill_payment import BillPaymentRepository
from lnbill_api.services.galoy import GaloyService
from lnbill_api.utils.lnurl import create_bill_metadata, create_hash

from .issuer import BillService


def provider_username(issuer: BillIssuer) -> str:
    """Galoy account name for the issuer; lightning addresses keep their local part."""

    username = issuer.username.strip()
    if "@" in username:
        return username.split("@", 1)[0]
    return username


class PaymentCoordinator:
    """Entry point used by the LNURL endpoint to obtain an invoice for a bill."""

    def __init__(
        self,
        repository: BillPaymentRepository,
        bill_service: BillService,
        galoy_service: GaloyService,
        *,
        allow_http: bool = False,
    ) -> None:
        self._repository = repository
        self._bill_service = bill_service
        self._galoy_service = galoy_service
        self._allow_http = allow_http

    @traced("app.bill")
    async def create_payment(self, domain: str, reference: str) -> Result[BillPayment]:
        """Return a payable record for ``reference@domain``.

        An existing pending invoice is reused while the provider still reports
        it pending and the bill terms are unchanged; otherwise a new invoice is
        issued and stored under the same natural key.
        """

        bill_result = await self._bill_service.lookup_by_ref(domain, reference)
        if isinstance(bill_result, Err):
            return bill_result
        bill = bill_result.value
        if bill.status is BillStatus.OVERDUE:
            return Err(BillOverdue(f"Bill {bill_identifier(domain, reference)} is overdue"))

        existing_result = await self._repository.find(
            domain=domain,
            period=bill.period,
            reference=bill.reference,
        )
        existing: BillPayment | None = None
        if isinstance(existing_result, Err):
            if not isinstance(existing_result.error, RecordNotFound):
                return existing_result
        else:
            existing = existing_result.value

        if existing is not None:
            if existing.invoice_status is InvoiceStatus.PAID:
                return Err(BillAlreadyPaid("Invoice already paid"))

            if existing.invoice_status is InvoiceStatus.PENDING:
                status_result = await self._galoy_service.check_invoice_status(existing.invoice)
                if isinstance(status_result, Err):
                    return status_result
                if status_result.value is InvoiceStatus.PAID:
                    return Err(BillAlreadyPaid("Invoice already paid"))
                if status_result.value is InvoiceStatus.PENDING and are_bill_details_equal(
                    existing.pending_response, bill
                ):
                    return Ok(existing)

        issuer_result = await self.resolve_settings(domain)
        if isinstance(issuer_result, Err):
            return issuer_result

        metadata = create_bill_metadata(domain, bill)
        invoice_result = await self._galoy_service.create_invoice(
            username=provider_username(issuer_result.value),
            amount=bill.amount,
            memo=bill.description,
            description_hash=create_hash(metadata),
        )
        if isinstance(invoice_result, Err):
            return invoice_result

        if existing is None:
            logger.info("Issued invoice for new bill payment", domain=domain, reference=reference, period=bill.period)
            return await self._repository.persist_new(
                BillPayment(
                    domain=domain,
                    reference=bill.reference,
                    period=bill.period,
                    invoice=invoice_result.value,
                    invoice_status=InvoiceStatus.PENDING,
                    pending_response=bill,
                )
            )

        logger.info(
            "Reissued invoice for bill payment",
            domain=domain,
            reference=reference,
            period=bill.period,
            previous_status=existing.invoice_status.value,
        )
        return await self._repository.update(
            existing.copy(
                invoice=invoice_result.value,
                invoice_status=InvoiceStatus.PENDING,
                pending_response=bill,
            ),
            expected_invoice=existing.invoice,
        )

    async def get_payment(self, domain: str, period: str, reference: str) -> Result[BillPayment]:
        return await self._repository.find(domain=domain, period=period, reference=reference)

    async def resolve_settings(self, domain: str) -> Result[BillIssuer]:
        return await self._bill_service.resolve_settings(domain, allow_http=self._allow_http)


__all__ = ["PaymentCoordinator", "provider_username"]
