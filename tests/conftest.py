import sys
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

import lnbill_api.models  # noqa: E402,F401
from lnbill_api.app import create_app  # noqa: E402
from lnbill_api.db.base import Base  # noqa: E402
from lnbill_api.db.session import get_session  # noqa: E402
from lnbill_api.domain import Bill, BillIssuer, Err, Ok, WalletAmount  # noqa: E402
from lnbill_api.domain.status import BillStatus, InvoiceStatus, WalletCurrency  # noqa: E402
from lnbill_api.observability.reconciliation import get_reconciliation_store  # noqa: E402


def make_bill(
    *,
    reference: str = "ref-1",
    period: str = "period-1",
    amount: int = 1000,
    currency: WalletCurrency = WalletCurrency.BTC,
    status: BillStatus = BillStatus.PENDING,
    description: str = "Electricity bill",
) -> Bill:
    return Bill(
        reference=reference,
        period=period,
        description=description,
        amount=WalletAmount(currency=currency, amount=amount),
        status=status,
    )


class StubBillService:
    """In-memory issuer keyed by reference."""

    def __init__(self, bills=None, *, username: str = "issuer@billing.example.com") -> None:
        self.bills = dict(bills or {})
        self.issuer = BillIssuer(
            domain="billing.example.com",
            name="Example Utility",
            username=username,
            bill_server_url="https://blink.billing.example.com/api",
        )
        self.settings_error = None
        self.notify_errors = {}
        self.lookups = []
        self.notifications = []

    async def resolve_settings(self, domain, *, allow_http=None, timeout_seconds=None):
        if self.settings_error is not None:
            return Err(self.settings_error)
        return Ok(self.issuer)

    async def lookup_by_ref(self, domain, reference):
        self.lookups.append((domain, reference))
        bill = self.bills[reference]
        if isinstance(bill, Err):
            return bill
        return Ok(bill)

    async def notify_payment_received(self, domain, reference):
        self.notifications.append((domain, reference))
        if reference in self.notify_errors:
            return Err(self.notify_errors[reference])
        bill = self.bills[reference]
        return Ok(
            Bill(
                reference=bill.reference,
                period=bill.period,
                description=bill.description,
                amount=bill.amount,
                status=BillStatus.PAID,
            )
        )


class StubGaloyService:
    """Provider double issuing ``invoice-N`` strings and reporting scripted statuses."""

    def __init__(self) -> None:
        self.statuses = {}
        self.created = []
        self.checked = []
        self.create_error = None
        self._counter = 0

    async def create_invoice(self, *, username, amount, memo, description_hash=None):
        if self.create_error is not None:
            return Err(self.create_error)
        self._counter += 1
        invoice = f"invoice-{self._counter}"
        self.created.append(
            {
                "username": username,
                "amount": amount,
                "memo": memo,
                "description_hash": description_hash,
                "invoice": invoice,
            }
        )
        self.statuses.setdefault(invoice, InvoiceStatus.PENDING)
        return Ok(invoice)

    async def check_invoice_status(self, invoice):
        self.checked.append(invoice)
        status = self.statuses.get(invoice, InvoiceStatus.PENDING)
        if isinstance(status, Err):
            return status
        return Ok(status)


@pytest.fixture(autouse=True)
def reset_reconciliation_store():
    store = get_reconciliation_store()
    store.reset()
    yield store
    store.reset()


@pytest.fixture
def bill_service():
    return StubBillService({"ref-1": make_bill()})


@pytest.fixture
def galoy_service():
    return StubGaloyService()


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def app_with_db(session_factory):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()
