"""FastAPI dependency providers for the payment services."""

from __future__ import annotations

from fastapi import Depends, Request
from starlette.datastructures import URL

from lnbill_api.core.settings import settings
from lnbill_api.db.session import async_session
from lnbill_api.services.bill import BillService, PaymentCoordinator
from lnbill_api.services.database import BillPaymentRepository
from lnbill_api.services.database.bill_payment import SessionFactory
from lnbill_api.services.galoy import GaloyService


def _first_forwarded_value(value: str | None) -> str | None:
    if not value:
        return None
    return value.split(",", 1)[0].strip() or None


def get_public_url(request: Request) -> URL:
    """The URL the client addressed, honouring forwarded headers from a trusted proxy."""

    url = request.url
    if not settings.trust_proxy_headers:
        return url
    scheme = _first_forwarded_value(request.headers.get("x-forwarded-proto"))
    host = _first_forwarded_value(request.headers.get("x-forwarded-host"))
    if scheme in {"http", "https"}:
        url = url.replace(scheme=scheme)
    if host:
        url = url.replace(netloc=host)
    return url


def get_session_factory() -> SessionFactory:
    return async_session


def get_bill_service() -> BillService:
    return BillService.from_settings(settings)


def get_galoy_service() -> GaloyService:
    return GaloyService.from_settings(settings)


def get_payment_coordinator(
    session_factory: SessionFactory = Depends(get_session_factory),
    bill_service: BillService = Depends(get_bill_service),
    galoy_service: GaloyService = Depends(get_galoy_service),
) -> PaymentCoordinator:
    return PaymentCoordinator(
        BillPaymentRepository(session_factory),
        bill_service,
        galoy_service,
        allow_http=settings.allow_http,
    )


__all__ = [
    "get_bill_service",
    "get_galoy_service",
    "get_payment_coordinator",
    "get_public_url",
    "get_session_factory",
]
