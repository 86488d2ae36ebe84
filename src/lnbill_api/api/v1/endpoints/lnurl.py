from __future__ import annotations

from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger
from starlette.datastructures import URL

from lnbill_api.api.dependencies import get_payment_coordinator, get_public_url
from lnbill_api.core.logging import bill_context
from lnbill_api.domain.errors import BillAlreadyPaid
from lnbill_api.domain.results import Err
from lnbill_api.schemas.lnurl import InvoiceResponse, PayRequestResponse
from lnbill_api.services.bill import PaymentCoordinator
from lnbill_api.utils.lnurl import create_bill_metadata, decode_invoice_amount


router = APIRouter(tags=["LNURL"])


@router.get(
    "/lnurlp/{reference}",
    response_model=Union[PayRequestResponse, InvoiceResponse],
    summary="LNURL-pay endpoint for a bill reference",
)
async def lnurl_pay(
    reference: str,
    amount: str | None = Query(default=None, description="Requested amount in millisatoshis"),
    coordinator: PaymentCoordinator = Depends(get_payment_coordinator),
    public_url: URL = Depends(get_public_url),
) -> PayRequestResponse | InvoiceResponse:
    domain = public_url.hostname
    if not domain or not reference:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Hostname or reference not found in the request",
        )

    with bill_context(domain, reference):
        result = await coordinator.create_payment(domain, reference)
        if isinstance(result, Err):
            if isinstance(result.error, BillAlreadyPaid):
                raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Invoice already paid")
            logger.warning("Bill payment request failed", error_kind=result.kind, error=result.message)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"error": "An internal server error occurred", "details": result.error.as_dict()},
            )

    payment = result.value
    sendable = decode_invoice_amount(payment.invoice)
    if isinstance(sendable, Err):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid invoice amount")

    if amount:
        try:
            requested = int(amount)
        except ValueError:
            requested = None
        if requested != sendable.value:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid invoice amount")
        return InvoiceResponse(pr=payment.invoice, routes=[])

    return PayRequestResponse(
        callback=str(public_url),
        minSendable=sendable.value,
        maxSendable=sendable.value,
        metadata=create_bill_metadata(domain, payment.pending_response),
    )
