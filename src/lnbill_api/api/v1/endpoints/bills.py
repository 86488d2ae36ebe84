from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from starlette.datastructures import URL

from lnbill_api.api.dependencies import get_payment_coordinator, get_public_url
from lnbill_api.domain.errors import BillIssuerSettingsNotFound
from lnbill_api.domain.results import Err
from lnbill_api.schemas.bill import BillIssuerResponse
from lnbill_api.schemas.lnurl import VerifyResponse
from lnbill_api.services.bill import PaymentCoordinator


router = APIRouter(tags=["Bills"])


@router.get("/verify", response_model=VerifyResponse, summary="Verify issuer settings for the request host")
async def verify_issuer(
    coordinator: PaymentCoordinator = Depends(get_payment_coordinator),
    public_url: URL = Depends(get_public_url),
) -> VerifyResponse:
    domain = public_url.hostname
    if not domain:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Hostname not found in the request")

    result = await coordinator.resolve_settings(domain)
    if isinstance(result, Err):
        if isinstance(result.error, BillIssuerSettingsNotFound):
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Toml not found")
        logger.warning("Issuer verification failed", domain=domain, error_kind=result.kind, error=result.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "An internal server error occurred", "details": result.error.as_dict()},
        )

    return VerifyResponse(settings=BillIssuerResponse.from_domain(result.value))
