from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from lnbill_api.core.settings import settings
from lnbill_api.db.session import async_session
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing
from .services.bill import BillService
from .services.database import BillPaymentRepository
from .services.galoy import GaloyService
from .workers import PaymentReconciliationWorker


APP_VERSION = "0.1.0"


def _session_factory():
    return async_session()


@asynccontextmanager
async def lifespan(app: FastAPI):
    reconciliation_worker = PaymentReconciliationWorker(
        BillPaymentRepository(_session_factory),
        BillService.from_settings(settings),
        GaloyService.from_settings(settings),
        interval_seconds=settings.reconciliation_interval_seconds,
        page_size=settings.reconciliation_page_size,
    )
    app.state.reconciliation_worker = reconciliation_worker

    reconciliation_enabled = settings.reconciliation_worker_enabled
    if reconciliation_enabled:
        reconciliation_worker.start()
        logger.info(
            "Payment reconciliation worker enabled",
            interval_seconds=reconciliation_worker.interval_seconds,
            page_size=settings.reconciliation_page_size,
        )
    else:
        logger.info(
            "Payment reconciliation worker disabled",
            reason="reconciliation_worker_enabled is false",
        )

    try:
        yield
    finally:
        if reconciliation_enabled and reconciliation_worker.is_running:
            await reconciliation_worker.stop()


def create_app() -> FastAPI:
    """Application factory for the bill payment FastAPI service."""
    configure_logging(
        service_name=settings.tracing_service_name,
        environment=settings.environment,
        version=APP_VERSION,
        level=settings.log_level,
        log_format=settings.log_format,
    )

    app = FastAPI(
        title="LN Bill API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    configure_tracing(
        app,
        service_name=settings.tracing_service_name,
        service_version=APP_VERSION,
        environment=settings.environment,
    )

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
