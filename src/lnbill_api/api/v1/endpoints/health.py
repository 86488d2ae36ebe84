from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lnbill_api.core.settings import settings
from lnbill_api.db.session import get_session
from lnbill_api.observability.reconciliation import get_reconciliation_store


router = APIRouter()


class ComponentStatus(BaseModel):
    status: Literal["ready", "starting", "disabled", "error", "degraded"]
    detail: str | None = Field(default=None, description="Human readable status detail")
    last_error_at: str | None = Field(default=None, description="ISO timestamp of most recent error")
    last_success_at: str | None = Field(default=None, description="ISO timestamp of most recent success")


class ReadinessPayload(BaseModel):
    status: Literal["ready", "degraded", "error"]
    components: Dict[str, ComponentStatus]
    reconciliation: Dict[str, object] = Field(default_factory=dict, description="Last sweep telemetry")


@router.get("/healthz", summary="Service health check")
async def service_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", summary="Service readiness", response_model=ReadinessPayload)
async def service_readiness(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> ReadinessPayload:
    components: Dict[str, ComponentStatus] = {}
    status: Literal["ready", "degraded", "error"] = "ready"

    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        components["database"] = ComponentStatus(
            status="error",
            detail=f"Database unreachable ({exc.__class__.__name__})",
            last_error_at=datetime.now(timezone.utc).isoformat(),
        )
        status = "error"
    else:
        components["database"] = ComponentStatus(status="ready")

    snapshot = get_reconciliation_store().snapshot()
    worker = getattr(request.app.state, "reconciliation_worker", None)
    if settings.reconciliation_worker_enabled and worker is not None:
        running = bool(getattr(worker, "is_running", False))
        worker_status: Literal["ready", "starting", "disabled", "error", "degraded"] = "ready" if running else "starting"
        detail = None if running else "Payment reconciliation worker not running"
        runs = snapshot.runs
        if runs.last_failure_at and (runs.last_completed_at is None or runs.last_failure_at > runs.last_completed_at):
            worker_status = "degraded"
            detail = f"{runs.last_failure_kind}: {runs.last_failure_reason}"
        if worker_status != "ready" and status == "ready":
            status = "degraded"
        components["payment_reconciliation"] = ComponentStatus(
            status=worker_status,
            detail=detail,
            last_error_at=runs.last_failure_at.isoformat() if runs.last_failure_at else None,
            last_success_at=runs.last_completed_at.isoformat() if runs.last_completed_at else None,
        )
    else:
        components["payment_reconciliation"] = ComponentStatus(
            status="disabled",
            detail="Payment reconciliation worker disabled via settings",
        )

    return ReadinessPayload(status=status, components=components, reconciliation=snapshot.as_dict())
