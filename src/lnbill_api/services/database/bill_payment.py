"""SQLAlchemy-backed store for bill payment reconciliation records."""

from __future__ import annotations

import re
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable

from loguru import logger
from sqlalchemy import func, insert, select, tuple_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lnbill_api.domain.bill import bill_identifier
from lnbill_api.domain.bill_payment import BillPayment
from lnbill_api.domain.errors import (
    RecordNotFound,
    RecordNotPersisted,
    RecordNotUpdated,
    StoreConnectionError,
    StoreError,
    UnknownStoreError,
)
from lnbill_api.domain.results import Err, Ok, Result
from lnbill_api.domain.status import InvoiceStatus
from lnbill_api.models.bill_payment import BillPaymentRecord
from lnbill_api.observability.tracing import traced
from lnbill_api.schemas.bill import deserialize_bill, serialize_bill

SessionFactory = Callable[[], Awaitable[AsyncSession]] | Callable[[], AsyncSession]
PendingCursor = tuple[datetime, str, str, str]

DEFAULT_PAGE_SIZE = 100

# ValueError covers snapshots that no longer validate against the bill schema.
_STORE_FAILURES = (SQLAlchemyError, OSError, ValueError)

_CONNECTION_ERROR_PATTERNS = (
    re.compile(r"ECONNREFUSED|Connection refused|Connect call failed", re.IGNORECASE),
    re.compile(r"28P01|password authentication failed", re.IGNORECASE),
    re.compile(r"3D000|database \"?[\w-]+\"? does not exist", re.IGNORECASE),
)


def classify_store_error(error: BaseException) -> StoreError:
    """Map a driver/ORM failure onto the store error taxonomy by message pattern."""

    message = str(error)
    sqlstate = getattr(getattr(error, "orig", None), "sqlstate", None)
    haystack = f"{sqlstate} {message}" if sqlstate else message
    for pattern in _CONNECTION_ERROR_PATTERNS:
        if pattern.search(haystack):
            return StoreConnectionError(message)
    return UnknownStoreError(message)


def _pending_sort_key():
    return tuple_(
        BillPaymentRecord.created_at,
        BillPaymentRecord.domain,
        BillPaymentRecord.reference,
        BillPaymentRecord.period,
    )


def pending_cursor(payment: BillPayment) -> PendingCursor:
    """Keyset position of ``payment`` in the pending sweep order."""

    return (payment.created_at, payment.domain, payment.reference, payment.period)


def _to_row_values(payment: BillPayment) -> dict[str, object]:
    return {
        "invoice": payment.invoice,
        "invoice_status": payment.invoice_status,
        "pending_response": serialize_bill(payment.pending_response),
        "paid_response": serialize_bill(payment.paid_response) if payment.paid_response else None,
        "notification_sent_date": payment.notification_sent_date,
    }


def record_to_bill_payment(record: BillPaymentRecord) -> BillPayment:
    return BillPayment(
        domain=record.domain,
        reference=record.reference,
        period=record.period,
        invoice=record.invoice,
        invoice_status=InvoiceStatus(record.invoice_status),
        pending_response=deserialize_bill(record.pending_response),
        paid_response=deserialize_bill(record.paid_response) if record.paid_response else None,
        notification_sent_date=record.notification_sent_date,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class BillPaymentRepository:
    """Persistence contract for :class:`BillPayment` records.

    Every method returns a ``Result``; driver exceptions never escape. Writes
    use their own short-lived session so concurrent request handlers and the
    reconciliation worker only share the engine's connection pool.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    @traced("services.database.bill_payment")
    async def find(self, *, domain: str, period: str, reference: str) -> Result[BillPayment]:
        try:
            session = await self._ensure_session()
            async with session as managed_session:
                stmt = select(BillPaymentRecord).where(
                    BillPaymentRecord.domain == domain,
                    BillPaymentRecord.reference == reference,
                    BillPaymentRecord.period == period,
                )
                record = (await managed_session.execute(stmt)).scalar_one_or_none()
                if record is None:
                    return Err(RecordNotFound(f"No bill payment for {bill_identifier(domain, reference)} ({period})"))
                return Ok(record_to_bill_payment(record))
        except _STORE_FAILURES as exc:
            logger.info(
                "Unknown bill payment repository error",
                domain=domain,
                reference=reference,
                period=period,
                error=str(exc),
            )
            return Err(classify_store_error(exc))

    @traced("services.database.bill_payment")
    async def persist_new(self, payment: BillPayment) -> Result[BillPayment]:
        stmt = insert(BillPaymentRecord).values(
            domain=payment.domain,
            reference=payment.reference,
            period=payment.period,
            **_to_row_values(payment),
        )
        try:
            session = await self._ensure_session()
            async with session as managed_session:
                result = await managed_session.execute(stmt)
                if result.rowcount != 1:
                    await managed_session.rollback()
                    return Err(RecordNotPersisted("Insert affected no rows"))
                await managed_session.commit()
        except IntegrityError as exc:
            logger.warning(
                "Bill payment already exists",
                domain=payment.domain,
                reference=payment.reference,
                period=payment.period,
                error=str(exc.orig),
            )
            return Err(RecordNotPersisted(str(exc.orig)))
        except _STORE_FAILURES as exc:
            logger.info(
                "Unknown bill payment repository error",
                domain=payment.domain,
                reference=payment.reference,
                error=str(exc),
            )
            return Err(classify_store_error(exc))
        return Ok(payment)

    @traced("services.database.bill_payment")
    async def update(
        self,
        payment: BillPayment,
        *,
        expected_invoice: str | None = None,
    ) -> Result[BillPayment]:
        """Conditionally overwrite a record.

        The statement only matches rows that are not already ``PAID`` and, when
        ``expected_invoice`` is given, still carry that invoice. Zero matched
        rows is reported as ``RecordNotUpdated`` without saying which guard
        excluded the row.
        """

        conditions = [
            BillPaymentRecord.domain == payment.domain,
            BillPaymentRecord.reference == payment.reference,
            BillPaymentRecord.period == payment.period,
            BillPaymentRecord.invoice_status != InvoiceStatus.PAID,
        ]
        if expected_invoice is not None:
            conditions.append(BillPaymentRecord.invoice == expected_invoice)

        stmt = (
            update(BillPaymentRecord)
            .where(*conditions)
            .values(**_to_row_values(payment), updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        try:
            session = await self._ensure_session()
            async with session as managed_session:
                result = await managed_session.execute(stmt)
                if result.rowcount == 0:
                    await managed_session.rollback()
                    return Err(RecordNotUpdated(f"No updatable bill payment for {bill_identifier(payment.domain, payment.reference)}"))
                await managed_session.commit()
        except _STORE_FAILURES as exc:
            logger.info(
                "Unknown bill payment repository error",
                domain=payment.domain,
                reference=payment.reference,
                error=str(exc),
            )
            return Err(classify_store_error(exc))
        return Ok(payment)

    async def yield_pending(
        self,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        after: PendingCursor | None = None,
    ) -> AsyncIterator[Result[BillPayment]]:
        """Stream ``PENDING`` records page by page in creation order.

        Pages are read with a keyset cursor on ``(created_at, domain, reference,
        period)``, so records leaving ``PENDING`` mid-sweep do not shift later
        pages. Iteration ends after the first page shorter than ``limit``. A failing
        page is yielded as a single ``Err`` and ends the iteration.

        Pass ``after=pending_cursor(last_seen)`` to resume a sweep behind the
        last record it yielded.
        """

        if limit <= 0:
            raise ValueError("limit must be positive")

        if after is not None and after[0] is None:
            raise ValueError("after cursor requires a creation timestamp")

        cursor: PendingCursor | None = after
        while True:
            conditions = [BillPaymentRecord.invoice_status == InvoiceStatus.PENDING]
            if cursor is not None:
                conditions.append(_pending_sort_key() > tuple_(*cursor))
            stmt = (
                select(BillPaymentRecord)
                .where(*conditions)
                .order_by(
                    BillPaymentRecord.created_at.asc(),
                    BillPaymentRecord.domain.asc(),
                    BillPaymentRecord.reference.asc(),
                    BillPaymentRecord.period.asc(),
                )
                .limit(limit)
            )
            try:
                session = await self._ensure_session()
                async with session as managed_session:
                    records = list((await managed_session.execute(stmt)).scalars().all())
                    page = [record_to_bill_payment(record) for record in records]
                    if records:
                        last = records[-1]
                        cursor = (last.created_at, last.domain, last.reference, last.period)
            except _STORE_FAILURES as exc:
                logger.info(
                    "Failed to fetch pending bill payments",
                    after=cursor[1:] if cursor else None,
                    limit=limit,
                    error=str(exc),
                )
                yield Err(classify_store_error(exc))
                return

            for payment in page:
                yield Ok(payment)

            if len(page) < limit:
                return

    async def _ensure_session(self) -> AsyncSession:
        maybe_session = self._session_factory()
        if isinstance(maybe_session, AsyncSession):
            return maybe_session
        return await maybe_session


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "BillPaymentRepository",
    "PendingCursor",
    "SessionFactory",
    "classify_store_error",
    "pending_cursor",
    "record_to_bill_payment",
]
