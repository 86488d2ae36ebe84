"""Worker wiring for pending bill payment reconciliation sweeps."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from loguru import logger

from lnbill_api.core.logging import bill_context
from lnbill_api.core.settings import settings
from lnbill_api.domain.bill import bill_identifier
from lnbill_api.domain.bill_payment import BillPayment
from lnbill_api.domain.errors import BillAlreadyPaid, BillExpired, BillNoUpdateNeeded, DomainError, ErrorLevel
from lnbill_api.domain.results import Err, Ok, Result
from lnbill_api.domain.status import InvoiceStatus
from lnbill_api.observability.reconciliation import ReconciliationObservabilityStore, get_reconciliation_store
from lnbill_api.observability.tracing import record_exception_in_current_span, traced
from lnbill_api.services.bill.issuer import BillService
from lnbill_api.services.database.bill_payment import BillPaymentRepository
from lnbill_api.services.galoy import GaloyService


def _log_failure(error: DomainError) -> None:
    context = {
        "error_kind": error.kind,
        "error": error.message,
        "severity": error.level.value,
    }
    if error.level is ErrorLevel.CRITICAL:
        logger.error("Failed to update payment", **context)
    elif error.level is ErrorLevel.WARN:
        logger.warning("Failed to update payment", **context)
    else:
        logger.info("Payment not updated", **context)


class PaymentReconciliationWorker:
    """Periodically reconciles pending bill payments against the provider."""

    def __init__(
        self,
        repository: BillPaymentRepository,
        bill_service: BillService,
        galoy_service: GaloyService,
        *,
        interval_seconds: int | None = None,
        page_size: int | None = None,
        observability: ReconciliationObservabilityStore | None = None,
    ) -> None:
        self._repository = repository
        self._bill_service = bill_service
        self._galoy_service = galoy_service
        self.interval_seconds = interval_seconds or settings.reconciliation_interval_seconds
        self._page_size = page_size or settings.reconciliation_page_size
        self._observability = observability or get_reconciliation_store()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.is_running: bool = False

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        self.is_running = True
        logger.info(
            "Payment reconciliation worker started",
            interval_seconds=self.interval_seconds,
            page_size=self._page_size,
        )

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        self.is_running = False
        logger.info("Payment reconciliation worker stopped")

    async def run_once(self) -> int:
        """Execute a single sweep and record its telemetry."""

        self._observability.record_sweep_started()
        result = await self.update_payments()
        if isinstance(result, Err):
            self._observability.record_failure(result.kind, result.message)
            logger.error("Payment reconciliation sweep failed", error_kind=result.kind, error=result.message)
            return 0
        self._observability.record_sweep_completed(result.value)
        logger.info("Payment reconciliation sweep completed", updated=result.value)
        return result.value

    @traced("app.bill")
    async def update_payments(self) -> Result[int]:
        """Reconcile every pending record; one record's failure never stops the sweep."""

        updated_count = 0
        async for item in self._repository.yield_pending(limit=self._page_size):
            if isinstance(item, Err):
                record_exception_in_current_span(item.error)
                self._observability.record_failure(item.kind, item.message)
                logger.error("Failed to fetch pending payments", error_kind=item.kind, error=item.message)
                continue

            payment = item.value
            with bill_context(payment.domain, payment.reference, payment.period):
                outcome = await self.update_payment(payment)
                if isinstance(outcome, Err):
                    record_exception_in_current_span(outcome.error)
                    _log_failure(outcome.error)
                    if outcome.level is ErrorLevel.INFO:
                        self._observability.record_outcome(outcome.kind)
                    else:
                        self._observability.record_failure(outcome.kind, outcome.message)
                    continue

                updated_count += 1
                self._observability.record_outcome("updated")
                logger.info("Payment updated successfully")

        return Ok(updated_count)

    @traced("app.bill")
    async def update_payment(self, payment: BillPayment) -> Result[bool]:
        if payment.invoice_status is InvoiceStatus.EXPIRED:
            return Err(BillExpired(f"Invoice for {bill_identifier(payment.domain, payment.reference)} expired"))
        if payment.invoice_status is InvoiceStatus.PAID:
            return Err(BillAlreadyPaid("Invoice already paid"))

        status_result = await self._galoy_service.check_invoice_status(payment.invoice)
        if isinstance(status_result, Err):
            return status_result
        current_status = status_result.value
        if current_status is InvoiceStatus.PENDING:
            return Err(BillNoUpdateNeeded("Invoice is still pending"))

        changes: dict[str, object] = {
            "invoice_status": current_status,
            "paid_response": None,
            "notification_sent_date": None,
        }
        if current_status is InvoiceStatus.PAID:
            bill_result = await self._bill_service.notify_payment_received(payment.domain, payment.reference)
            if isinstance(bill_result, Err):
                return bill_result
            changes["paid_response"] = bill_result.value
            changes["notification_sent_date"] = datetime.now(timezone.utc)

        updated = await self._repository.update(payment.copy(**changes), expected_invoice=payment.invoice)
        if isinstance(updated, Err):
            return updated
        return Ok(True)

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as exc:  # pragma: no cover - defensive logging
                logger.exception("Payment reconciliation iteration failed", error=str(exc))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue


__all__ = ["PaymentReconciliationWorker"]
