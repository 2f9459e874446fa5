"""
Shared fixtures: a fresh SQLite database per test, in-process clients for the
cluster app, and in-memory stand-ins for Barion, the carriers, Billingo and Resend
that record every request they receive.
"""
import json
import os

# Must be set before the shared modules are imported
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from main import SUB_APPS, app
from shared.config.database import Base, get_db
from shared.errors import BadRequestError
from shared.security import create_access_token, limiter
from services.inventory_service.models import Inventory, Product, Variant
from services.invoice_service.client import BillingoClient, get_billingo_client
from services.notification_service.client import ResendClient, get_email_client
from services.order_service.models import Address, Coupon, Order, OrderItem
from services.payment_service.models import Payment
from services.payment_service.providers.barion import BarionProvider
from services.payment_service.providers.factory import get_payment_provider
from services.shipping_service.carriers.dpd import DpdCarrier
from services.shipping_service.carriers.factory import get_carrier_factory
from services.shipping_service.carriers.packeta import PacketaCarrier


USER_ID = "user-1"


class FakeUpstream:
    """
    One httpx.MockTransport for every third-party API. Routes are keyed by
    (method, path); a route's response may be a callable taking the request.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method: str, path: str, status: int = 200, body=None):
        self.routes[(method, path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": f"no route for {request.method} {request.url.path}"})
        status, body = route
        if callable(body):
            return body(request)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body if body is not None else {})

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def json_calls(self, path: str) -> list[dict]:
        return [json.loads(r.content) for r in self.calls(path)]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeBarion:
    """Gateway state per PaymentId, served through FakeUpstream."""

    def __init__(self, upstream: FakeUpstream):
        self.states: dict[str, str] = {}
        self.started = 0
        upstream.add("POST", "/v2/Payment/GetPaymentState", body=self._state)
        upstream.add("POST", "/v2/Payment/Start", body=self._start)

    def _state(self, request):
        payment_id = json.loads(request.content)["PaymentId"]
        if payment_id not in self.states:
            return httpx.Response(
                400, json={"Errors": [{"ErrorCode": "PaymentNotFound", "Title": "Not found", "Description": payment_id}]}
            )
        return httpx.Response(200, json={"PaymentId": payment_id, "Status": self.states[payment_id]})

    def _start(self, request):
        self.started += 1
        payment_id = f"BARION-{self.started}"
        return httpx.Response(
            200,
            json={
                "PaymentId": payment_id,
                "Status": "Prepared",
                "GatewayUrl": f"https://secure.test.barion.com/Pay?Id={payment_id}",
                "Errors": [],
            },
        )


class FakeCarrierFactory:
    def __init__(self, transport):
        self.transport = transport

    def get_carrier(self, carrier_id: str):
        if carrier_id in ("packeta", "foxpost"):
            return PacketaCarrier(
                name=carrier_id,
                api_url="https://packeta.test/api/rest",
                branch_url="https://packeta.test/api/v4",
                api_key="packeta-key",
                api_password="packeta-secret",
                transport=self.transport,
            )
        if carrier_id == "dpd":
            return DpdCarrier(api_url="https://dpd.test/v1", api_key="dpd-key", transport=self.transport)
        raise BadRequestError(f"Unsupported carrier: {carrier_id}")


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'restyle.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def barion(upstream):
    return FakeBarion(upstream)


@pytest.fixture
def provider(upstream, barion):
    return BarionProvider(base_url="https://api.test.barion.com", pos_key="test-pos-key", transport=upstream.transport)


@pytest.fixture
def email_client(upstream):
    upstream.add("POST", "/emails", body={"id": "email-1"})
    return ResendClient(api_url="https://resend.test", api_key="re_test", sender="shop@restyle.test", transport=upstream.transport)


@pytest.fixture
def billingo_client(upstream):
    return BillingoClient(api_url="https://billingo.test/v3", api_key="billingo-key", transport=upstream.transport)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
async def client(session_factory, provider, email_client, billingo_client, upstream):
    async def _get_db():
        async with session_factory() as session:
            yield session

    carriers = FakeCarrierFactory(upstream.transport)
    for sub_app in SUB_APPS.values():
        sub_app.dependency_overrides[get_db] = _get_db
        sub_app.dependency_overrides[get_payment_provider] = lambda: provider
        sub_app.dependency_overrides[get_email_client] = lambda: email_client
        sub_app.dependency_overrides[get_billingo_client] = lambda: billingo_client
        sub_app.dependency_overrides[get_carrier_factory] = lambda: carriers

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    for sub_app in SUB_APPS.values():
        sub_app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': USER_ID})}"}


@pytest.fixture
def internal_headers():
    return {"X-Internal-API-Key": "test-internal-key"}


@pytest.fixture
def fetch(session_factory):
    """Reads rows through a fresh session so writes made by the app are visible."""

    async def _fetch(stmt):
        async with session_factory() as session:
            return (await session.execute(stmt)).scalars().all()

    return _fetch


@pytest.fixture
async def catalog(db):
    """Two variants with 5 units each; only the first has a known weight."""
    product = Product(title="Levi's 501 farmer")
    db.add(product)
    await db.flush()
    jeans = Variant(product_id=product.id, sku="LEVI-501-32", price_gross=4500, vat_rate=27, weight_g=1200)
    shirt = Variant(product_id=product.id, sku="LEVI-501-34", price_gross=3000, vat_rate=27, weight_g=None)
    db.add_all([jeans, shirt])
    await db.flush()
    db.add_all([Inventory(variant_id=jeans.id, quantity_available=5), Inventory(variant_id=shirt.id, quantity_available=5)])
    await db.commit()
    return {"jeans": jeans, "shirt": shirt}


@pytest.fixture
def make_order(db, catalog):
    """Inserts a two-line order (2x jeans, 1x shirt); optionally a pending Barion payment for it."""

    async def _make(
        status="pending",
        payment_status="pending",
        payment_reference: str | None = None,
        total_gross=10000,
        user_id=USER_ID,
    ):
        address = Address(
            user_id=user_id,
            type="shipping",
            name="Kovács Anna",
            zip_code="1051",
            city="Budapest",
            street="Október 6. utca 12",
            phone="+36301234567",
        )
        db.add(address)
        await db.flush()
        order = Order(
            order_number=f"ORD-TEST-{address.id[:8]}",
            user_id=user_id,
            email="anna@example.com",
            full_name="Kovács Anna",
            status=status,
            payment_status=payment_status,
            total_net=7874.02,
            total_vat=2125.98,
            total_gross=total_gross,
            shipping_method="packeta",
            shipping_fee_gross=990,
            billing_address_id=address.id,
            shipping_address_id=address.id,
        )
        db.add(order)
        await db.flush()
        db.add_all(
            [
                OrderItem(
                    order_id=order.id,
                    variant_id=catalog["jeans"].id,
                    sku="LEVI-501-32",
                    title="Levi's 501 farmer",
                    quantity=2,
                    unit_price_gross=4500,
                ),
                OrderItem(
                    order_id=order.id,
                    variant_id=catalog["shirt"].id,
                    sku="LEVI-501-34",
                    title="Levi's 501 farmer",
                    quantity=1,
                    unit_price_gross=3000,
                ),
            ]
        )
        if payment_reference:
            db.add(
                Payment(
                    order_id=order.id,
                    provider="barion",
                    provider_reference=payment_reference,
                    amount=total_gross,
                    status="pending",
                )
            )
        await db.commit()
        return order.id

    return _make


@pytest.fixture
def make_coupon(db):
    async def _make(**fields):
        coupon = Coupon(**{"code": "SPRING10", "discount_type": "percentage", "discount_value": 10, **fields})
        db.add(coupon)
        await db.commit()
        return coupon

    return _make
