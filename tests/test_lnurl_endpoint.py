import pytest
from httpx import ASGITransport, AsyncClient

from conftest import make_bill
from lnbill_api.api.dependencies import get_payment_coordinator
from lnbill_api.core.settings import settings as app_settings
from lnbill_api.domain import BillIssuer, BillPayment, Err, Ok
from lnbill_api.domain.errors import BillAlreadyPaid, BillIssuerSettingsNotFound, BillNotFound, UnknownIssuerError
from lnbill_api.domain.status import InvoiceStatus
from lnbill_api.utils import create_bill_metadata

BASE_URL = "http://billing.example.com"
INVOICE = "lnbc10u1pjqqqqqpp5example"


class StubCoordinator:
    def __init__(self, payment_result=None, settings_result=None) -> None:
        self.payment_result = payment_result
        self.settings_result = settings_result
        self.calls = []

    async def create_payment(self, domain, reference):
        self.calls.append((domain, reference))
        return self.payment_result

    async def resolve_settings(self, domain):
        self.calls.append((domain,))
        return self.settings_result


def _payment(invoice: str = INVOICE) -> BillPayment:
    return BillPayment(
        domain="billing.example.com",
        reference="ref-1",
        period="period-1",
        invoice=invoice,
        invoice_status=InvoiceStatus.PENDING,
        pending_response=make_bill(),
    )


@pytest.fixture
def client_for(app_with_db):
    app, _ = app_with_db

    def build(coordinator: StubCoordinator) -> AsyncClient:
        app.dependency_overrides[get_payment_coordinator] = lambda: coordinator
        return AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL)

    return build


@pytest.mark.asyncio
async def test_lnurlp_returns_pay_request(client_for) -> None:
    coordinator = StubCoordinator(payment_result=Ok(_payment()))

    async with client_for(coordinator) as client:
        response = await client.get("/.well-known/lnurlp/ref-1")

    assert response.status_code == 200
    payload = response.json()
    assert payload["tag"] == "payRequest"
    assert payload["minSendable"] == 1_000_000
    assert payload["maxSendable"] == 1_000_000
    assert payload["callback"] == f"{BASE_URL}/.well-known/lnurlp/ref-1"
    assert payload["metadata"] == create_bill_metadata("billing.example.com", make_bill())
    assert coordinator.calls == [("billing.example.com", "ref-1")]


@pytest.mark.asyncio
async def test_lnurlp_returns_invoice_for_matching_amount(client_for) -> None:
    coordinator = StubCoordinator(payment_result=Ok(_payment()))

    async with client_for(coordinator) as client:
        response = await client.get("/.well-known/lnurlp/ref-1", params={"amount": "1000000"})

    assert response.status_code == 200
    assert response.json() == {"pr": INVOICE, "routes": []}


@pytest.mark.asyncio
async def test_lnurlp_rejects_mismatched_amount(client_for) -> None:
    coordinator = StubCoordinator(payment_result=Ok(_payment()))

    async with client_for(coordinator) as client:
        response = await client.get("/.well-known/lnurlp/ref-1", params={"amount": "999"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Invalid invoice amount"


@pytest.mark.asyncio
async def test_lnurlp_rejects_invoice_without_amount(client_for) -> None:
    coordinator = StubCoordinator(payment_result=Ok(_payment(invoice="lnbc1pjqqqqqpp5example")))

    async with client_for(coordinator) as client:
        response = await client.get("/.well-known/lnurlp/ref-1")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_lnurlp_maps_already_paid_to_bad_gateway(client_for) -> None:
    coordinator = StubCoordinator(payment_result=Err(BillAlreadyPaid("Invoice already paid")))

    async with client_for(coordinator) as client:
        response = await client.get("/.well-known/lnurlp/ref-1")

    assert response.status_code == 502
    assert response.json()["detail"] == "Invoice already paid"


@pytest.mark.asyncio
async def test_lnurlp_maps_other_errors_to_internal_error(client_for) -> None:
    coordinator = StubCoordinator(payment_result=Err(BillNotFound("Bill not found")))

    async with client_for(coordinator) as client:
        response = await client.get("/.well-known/lnurlp/ref-404")

    assert response.status_code == 500
    assert response.json()["detail"]["details"]["kind"] == "BillNotFound"


@pytest.mark.asyncio
async def test_verify_returns_issuer_settings(client_for) -> None:
    issuer = BillIssuer(
        domain="billing.example.com",
        name="Example Utility",
        username="utility@billing.example.com",
        bill_server_url="https://blink.billing.example.com/api",
    )
    coordinator = StubCoordinator(settings_result=Ok(issuer))

    async with client_for(coordinator) as client:
        response = await client.get("/api/verify")

    assert response.status_code == 200
    settings = response.json()["settings"]
    assert settings["name"] == "Example Utility"
    assert settings["bill_server_url"] == "https://blink.billing.example.com/api"
    assert coordinator.calls == [("billing.example.com",)]


@pytest.mark.asyncio
async def test_verify_maps_missing_settings_to_bad_gateway(client_for) -> None:
    coordinator = StubCoordinator(settings_result=Err(BillIssuerSettingsNotFound("blink.toml not found")))

    async with client_for(coordinator) as client:
        response = await client.get("/api/verify")

    assert response.status_code == 502


@pytest.mark.asyncio
async def test_verify_maps_other_errors_to_internal_error(client_for) -> None:
    coordinator = StubCoordinator(settings_result=Err(UnknownIssuerError("timeout")))

    async with client_for(coordinator) as client:
        response = await client.get("/api/verify")

    assert response.status_code == 500


@pytest.mark.asyncio
async def test_lnurlp_uses_forwarded_host_from_trusted_proxy(client_for, monkeypatch) -> None:
    monkeypatch.setattr(app_settings, "trust_proxy_headers", True)
    coordinator = StubCoordinator(payment_result=Ok(_payment()))

    async with client_for(coordinator) as client:
        response = await client.get(
            "/.well-known/lnurlp/ref-1",
            headers={"X-Forwarded-Host": "bills.public.example", "X-Forwarded-Proto": "https, http"},
        )

    assert response.status_code == 200
    assert response.json()["callback"] == "https://bills.public.example/.well-known/lnurlp/ref-1"
    assert coordinator.calls == [("bills.public.example", "ref-1")]


@pytest.mark.asyncio
async def test_forwarded_headers_are_ignored_without_proxy_trust(client_for, monkeypatch) -> None:
    monkeypatch.setattr(app_settings, "trust_proxy_headers", False)
    coordinator = StubCoordinator(settings_result=Err(UnknownIssuerError("timeout")))

    async with client_for(coordinator) as client:
        response = await client.get("/api/verify", headers={"X-Forwarded-Host": "attacker.example"})

    assert response.status_code == 500
    assert coordinator.calls == [("billing.example.com",)]
