"""Shared pytest fixtures: in-memory database, ASGI client, mocked gateways."""

import os
import tempfile
import uuid

os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("SQLITE_PATH", ":memory:")
os.environ.setdefault("JWT_ACCESS_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENABLE_SCHEDULER", "false")
os.environ.setdefault("PDF_OUTPUT_DIR", tempfile.mkdtemp(prefix="bolibooks-pdf-"))

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from app.core.db import Base, get_db, enable_sqlite_foreign_keys
from app.core.security import hash_password
from app.models.users.user_models import User
from app.services.gateways.registry import GatewayRegistry
from app.services.gateways.stripe_gateway import StripeGateway
from app.services.gateways.paypal_gateway import PayPalGateway
from app.services.gateways.bml_gateway import BMLGateway

STRIPE_WEBHOOK_SECRET = "whsec_test"
BML_WEBHOOK_SECRET = "bml_webhook_secret"
BML_BASE_URL = "https://bml.test/api"
PAYPAL_WEBHOOK_ID = "WH-TEST"


# =====================================================
# DATABASE
# =====================================================
@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# =====================================================
# GATEWAYS
# =====================================================
class GatewayStub:
    """Canned provider responses keyed by (METHOD, url path)."""

    def __init__(self):
        self.routes: dict[tuple[str, str], httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status_code: int = 200, json=None):
        self.routes[(method.upper(), path)] = httpx.Response(status_code, json=json)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"message": f"no stub for {request.method} {request.url.path}"})
        return response


@pytest.fixture
def gateway_stub():
    return GatewayStub()


@pytest.fixture
async def gateway_http(gateway_stub):
    async with httpx.AsyncClient(transport=httpx.MockTransport(gateway_stub.handler)) as http:
        yield http


@pytest.fixture
def gateway_registry(gateway_http):
    return GatewayRegistry(
        [
            StripeGateway(
                gateway_http,
                secret_key="sk_test",
                webhook_secret=STRIPE_WEBHOOK_SECRET,
            ),
            PayPalGateway(
                gateway_http,
                client_id="paypal-client",
                client_secret="paypal-secret",
                webhook_id=PAYPAL_WEBHOOK_ID,
                return_url="http://localhost:3000/payment/success",
                cancel_url="http://localhost:3000/payment/cancel",
            ),
            BMLGateway(
                gateway_http,
                enabled=True,
                merchant_id="merchant-1",
                api_key="bml-key",
                api_secret="bml-secret",
                webhook_secret=BML_WEBHOOK_SECRET,
                base_url=BML_BASE_URL,
            ),
        ]
    )


# =====================================================
# APP CLIENT
# =====================================================
@pytest.fixture
async def client(session_factory, gateway_registry):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.gateways = gateway_registry

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def unique_suffix() -> str:
    return uuid.uuid4().hex[:8]


async def register_company(client: AsyncClient, suffix: str, **extra) -> dict:
    email = f"owner_{suffix}@example.com"
    resp = await client.post(
        "/auth/register",
        json={
            "company_name": f"Shop {suffix}",
            "email": email,
            "password": "Secret123!",
            "currency": "USD",
            **extra,
        },
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    return {
        "email": email,
        "password": "Secret123!",
        "company_id": data["user"]["company"]["id"],
        "headers": {"Authorization": f"Bearer {data['auth']['access_token']}"},
    }


@pytest.fixture
def company_factory(client):
    async def _register(suffix: str, **extra):
        return await register_company(client, suffix, **extra)

    return _register


@pytest.fixture
async def owner(client, unique_suffix):
    """A freshly registered company and its owner's auth headers."""
    return await register_company(client, unique_suffix)


@pytest.fixture
async def cashier_headers(client, owner, unique_suffix):
    email = f"cashier_{unique_suffix}@example.com"
    resp = await client.post(
        "/users",
        headers=owner["headers"],
        json={"email": email, "password": "Cashier123!", "role": "cashier"},
    )
    assert resp.status_code == 201, resp.text
    return await login_headers(client, email, "Cashier123!")


async def login_headers(client: AsyncClient, email: str, password: str) -> dict:
    login = await client.post("/auth/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    return {"Authorization": f"Bearer {login.json()['data']['auth']['access_token']}"}


@pytest.fixture
async def accountant_headers(client, owner, unique_suffix):
    email = f"accountant_{unique_suffix}@example.com"
    resp = await client.post(
        "/users",
        headers=owner["headers"],
        json={"email": email, "password": "Account123!", "role": "accountant"},
    )
    assert resp.status_code == 201, resp.text
    return await login_headers(client, email, "Account123!")


@pytest.fixture
async def admin_headers(client, db_session):
    """A platform super admin, who belongs to no company."""
    db_session.add(
        User(
            username="root@example.com",
            password_hash=hash_password("RootPass123!"),
            role="super_admin",
            company_id=None,
        )
    )
    await db_session.commit()
    return await login_headers(client, "root@example.com", "RootPass123!")


@pytest.fixture
def create_plan(client, admin_headers):
    async def _create(**fields):
        body = {"name": "Tiny", "price": "5.00", **fields}
        resp = await client.post("/subscription-plans", headers=admin_headers, json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


# =====================================================
# DOMAIN HELPERS
# =====================================================
@pytest.fixture
def create_customer(client):
    async def _create(headers, name="Acme Ltd", email=None):
        resp = await client.post(
            "/customers",
            headers=headers,
            json={"name": name, "email": email or f"{uuid.uuid4().hex[:8]}@example.com"},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture
def create_product(client):
    async def _create(headers, price="100.00", stock=10, **extra):
        body = {
            "sku": f"SKU-{uuid.uuid4().hex[:8]}",
            "name": "Widget",
            "price": price,
            "stock_quantity": stock,
            "track_inventory": True,
            **extra,
        }
        resp = await client.post("/products", headers=headers, json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture
def sent_invoice(client, create_customer, create_product):
    """Creates a one-line invoice for ``total`` and marks it sent."""

    async def _create(headers, total="100.00"):
        customer = await create_customer(headers)
        product = await create_product(headers, price=total)
        resp = await client.post(
            "/invoices",
            headers=headers,
            json={
                "customer_id": customer["id"],
                "items": [{"product_id": product["id"], "quantity": 1}],
            },
        )
        assert resp.status_code == 201, resp.text
        invoice = resp.json()["data"]

        sent = await client.post(f"/invoices/{invoice['id']}/send", headers=headers)
        assert sent.status_code == 200, sent.text
        return sent.json()["data"]

    return _create
