import pytest
from httpx import ASGITransport, AsyncClient


@pytest.mark.asyncio
async def test_healthz_reports_version(app_with_db) -> None:
    app, _ = app_with_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/healthz")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["version"] == "0.1.0"


@pytest.mark.asyncio
async def test_readyz_reports_component_statuses(app_with_db, reset_reconciliation_store) -> None:
    app, _ = app_with_db
    reset_reconciliation_store.record_sweep_started()
    reset_reconciliation_store.record_sweep_completed(2)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/readyz")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ready"
    components = payload["components"]
    assert components["database"]["status"] == "ready"
    assert components["payment_reconciliation"]["status"] == "disabled"
    assert payload["reconciliation"]["sweeps"] == {"started": 1, "completed": 1}
    assert payload["reconciliation"]["runs"]["last_updated_count"] == 2
