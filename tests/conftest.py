import json
import os
from datetime import datetime, timedelta

# Must be set before the application modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from astro_api import models  # noqa: E402,F401
from astro_api.database import Base, get_db  # noqa: E402
from astro_api.domain.otp.router import get_otp_service  # noqa: E402
from astro_api.domain.otp.service import OtpService  # noqa: E402
from astro_api.domain.payments.cashfree_service import CashfreeProvider  # noqa: E402
from astro_api.domain.payments.razorpay_service import RazorpayProvider  # noqa: E402
from astro_api.domain.payments.router import (  # noqa: E402
    get_cashfree_provider,
    get_razorpay_provider,
)
from astro_api.main import app  # noqa: E402
from astro_api.models import Service  # noqa: E402
from astro_api.rate_limiter import InMemoryCounterStore, set_counter_store  # noqa: E402

RAZORPAY_KEY_ID = "rzp_test_key"
RAZORPAY_KEY_SECRET = "rzp_test_secret"
RAZORPAY_WEBHOOK_SECRET = "rzp_webhook_secret"
CASHFREE_APP_ID = "cf_app_id"
CASHFREE_SECRET_KEY = "cf_secret_key"


class FakeClock:
    """Callable clock the tests move forward by hand"""

    def __init__(self):
        self.now = datetime(2026, 1, 15, 9, 30, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeNotifier:
    """Records OTP emails instead of sending them"""

    def __init__(self):
        self.sent = []
        self.fail = False
        self.configured = True

    async def __call__(self, email, code, purpose):
        if self.fail:
            raise RuntimeError("SMTP connection refused")
        self.sent.append((email, code, purpose))
        return {"id": f"test-{len(self.sent)}"}

    def is_configured(self) -> bool:
        return self.configured

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


class RazorpayGateway:
    """In-memory stand-in for the Razorpay Orders API"""

    def __init__(self):
        self.orders = {}
        self.created = []
        self.fail = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            return httpx.Response(500, json={"error": {"description": "Gateway unavailable"}})

        if request.method == "POST" and request.url.path == "/v1/orders":
            body = json.loads(request.content)
            self.created.append(body)
            order_id = f"order_{len(self.orders) + 1:04d}"
            order = {
                "id": order_id,
                "entity": "order",
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body["receipt"],
                "status": "created",
            }
            self.orders[order_id] = order
            return httpx.Response(200, json=order)

        if request.method == "GET" and request.url.path.startswith("/v1/orders/"):
            order = self.orders.get(request.url.path.rsplit("/", 1)[-1])
            if not order:
                return httpx.Response(404, json={"error": {"description": "Not found"}})
            return httpx.Response(200, json=order)

        return httpx.Response(404)

    def set_status(self, order_id: str, status: str):
        self.orders[order_id]["status"] = status


class CashfreeGateway:
    """In-memory stand-in for the Cashfree PG Orders API"""

    def __init__(self):
        self.orders = {}
        self.created = []
        self.headers = []
        self.fail = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.headers.append(dict(request.headers))
        if self.fail:
            return httpx.Response(500, json={"message": "Gateway unavailable"})

        if request.method == "POST" and request.url.path == "/pg/orders":
            body = json.loads(request.content)
            self.created.append(body)
            order = {
                "order_id": body["order_id"],
                "cf_order_id": 5000 + len(self.orders),
                "order_amount": body["order_amount"],
                "order_currency": body["order_currency"],
                "order_status": "ACTIVE",
                "payment_session_id": f"session_{body['order_id']}",
            }
            self.orders[body["order_id"]] = order
            return httpx.Response(200, json=order)

        if request.method == "GET" and request.url.path.startswith("/pg/orders/"):
            order = self.orders.get(request.url.path.rsplit("/", 1)[-1])
            if not order:
                return httpx.Response(404, json={"message": "order not found"})
            return httpx.Response(200, json=order)

        return httpx.Response(404)

    def set_status(self, order_id: str, status: str):
        self.orders[order_id]["order_status"] = status


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def counter_store():
    store = InMemoryCounterStore()
    set_counter_store(store)
    yield store
    set_counter_store(None)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def otp_service(db_session, notifier, clock):
    return OtpService(
        db_session,
        notifier=notifier,
        notifier_configured=notifier.is_configured,
        clock=clock,
    )


@pytest.fixture
def razorpay_gateway():
    return RazorpayGateway()


@pytest.fixture
def cashfree_gateway():
    return CashfreeGateway()


@pytest.fixture
def razorpay(razorpay_gateway):
    return RazorpayProvider(
        key_id=RAZORPAY_KEY_ID,
        key_secret=RAZORPAY_KEY_SECRET,
        webhook_secret=RAZORPAY_WEBHOOK_SECRET,
        api_url="https://api.razorpay.com/v1",
        transport=httpx.MockTransport(razorpay_gateway.handler),
    )


@pytest.fixture
def cashfree(cashfree_gateway):
    return CashfreeProvider(
        app_id=CASHFREE_APP_ID,
        secret_key=CASHFREE_SECRET_KEY,
        api_version="2025-01-01",
        environment="sandbox",
        return_url_base="https://astrobyab.test",
        transport=httpx.MockTransport(cashfree_gateway.handler),
    )


@pytest.fixture
def client(db_session, otp_service, razorpay, cashfree):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_otp_service] = lambda: otp_service
    app.dependency_overrides[get_razorpay_provider] = lambda: razorpay
    app.dependency_overrides[get_cashfree_provider] = lambda: cashfree

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def career_service(db_session):
    service = Service(
        id="svc-1",
        name="CAREER & FINANCE",
        slug="career-finance",
        price=999,
        currency="INR",
        description="Career timing and wealth analysis",
        icon="Briefcase",
        features=["Profession selection", "Promotion timing"],
    )
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service
