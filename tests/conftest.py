"""Shared test configuration and fixtures for Kermesse Tickets tests"""

import json
import logging
import os
import tempfile
import uuid
from dataclasses import replace
from decimal import Decimal

import pytest

from tests.config import test_config

# kermesse.config reads the environment at import time
_bootstrap_dir = tempfile.mkdtemp(prefix="kermesse-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_bootstrap_dir}/bootstrap.db"
os.environ["ADMIN_PASSWORD"] = test_config["admin_password"]
os.environ["APP_BASE_URL"] = test_config["app_base_url"]
os.environ["EVENT_NAME"] = test_config["event_name"]
os.environ["STRIPE_SECRET_KEY"] = test_config["stripe_secret_key"]
os.environ["STRIPE_WEBHOOK_SECRET"] = test_config["stripe_webhook_secret"]

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from kermesse.backends.payment_client import CheckoutSession, WebhookEvent  # noqa: E402
from kermesse.errors import ValidationError  # noqa: E402
from kermesse.main import app  # noqa: E402
from kermesse.models.database import build_engine, get_db  # noqa: E402
from kermesse.services.email_service import EmailService, get_email_service  # noqa: E402
from kermesse.services.lifecycle_service import RegistrationLifecycleService  # noqa: E402
from kermesse.services.payment_service import get_payment_client  # noqa: E402
from kermesse.services.pricing_service import (  # noqa: E402
    PriceTable,
    TicketTier,
    get_price_table,
)
from kermesse.services.registration_service import RegistrationService  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakePaymentClient:
    """In-memory stand-in for the Stripe checkout API"""

    VALID_SIGNATURE = "t=1,v1=valid"

    def __init__(self):
        self.sessions: dict[str, CheckoutSession] = {}
        self.created: list[dict] = []

    def create_checkout_session(self, **kwargs) -> CheckoutSession:
        session_id = f"cs_test_{uuid.uuid4().hex[:16]}"
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.stripe.test/pay/{session_id}",
            payment_status="unpaid",
            metadata=dict(kwargs["metadata"]),
        )
        self.sessions[session_id] = session
        self.created.append(kwargs)
        return session

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        if session_id not in self.sessions:
            raise ValidationError("Invalid payment session.")
        return replace(self.sessions[session_id])

    def parse_webhook(self, payload: bytes, signature):
        if signature != self.VALID_SIGNATURE:
            raise ValidationError("Invalid webhook signature.")
        event = json.loads(payload)
        data_object = event["data"]["object"]
        session_id = (
            data_object["id"] if data_object.get("object") == "checkout.session" else None
        )
        return WebhookEvent(type=event["type"], session_id=session_id)

    def mark_paid(self, session_id: str) -> None:
        self.sessions[session_id].payment_status = "paid"

    def last_session_id(self) -> str:
        return list(self.sessions)[-1]


class FakeEmailClient:
    """Records sent emails instead of calling Mailgun"""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    async def send_email(self, to, subject, text, html=None, inline_images=None):
        if self.fail:
            raise RuntimeError("Email sending failed: mailgun unavailable")
        self.sent.append(
            {
                "to": to,
                "subject": subject,
                "text": text,
                "html": html,
                "inline_images": inline_images or [],
            }
        )
        return {"id": f"<{uuid.uuid4()}@mg.example.com>"}


@pytest.fixture(scope="session")
def postgres_url():
    """PostgreSQL container URL when TEST_WITH_POSTGRES=1, otherwise None"""
    if os.getenv("TEST_WITH_POSTGRES") != "1":
        yield None
        return

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer("postgres:16") as postgres:
        yield postgres.get_connection_url()


@pytest.fixture
def engine(tmp_path, postgres_url):
    """Fresh registrations schema for each test"""
    database_url = postgres_url or f"sqlite:///{tmp_path / 'kermesse.db'}"
    engine = build_engine(database_url)
    SQLModel.metadata.create_all(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def _db_session(engine):
    """Private DB session for fixtures only.

    Prefer the `registration_service` or `lifecycle` fixtures in tests.
    """
    session = Session(engine)

    yield session

    session.close()


@pytest.fixture
def registration_service(_db_session):
    return RegistrationService(_db_session)


@pytest.fixture
def payment_client():
    return FakePaymentClient()


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest.fixture
def email_service(email_client):
    return EmailService(email_client, test_config["event_name"])


@pytest.fixture
def price_table():
    return PriceTable(
        tiers={
            "early": TicketTier(label="Early Bird", price=65000),
            "general": TicketTier(label="General", price=95000),
            "vip": TicketTier(label="VIP", price=180000),
        },
        service_fee_percent=Decimal("6"),
        currency="mxn",
    )


@pytest.fixture
def make_lifecycle(payment_client, email_service, price_table):
    """Factory for lifecycle services bound to a given DB session"""

    def _make(session: Session) -> RegistrationLifecycleService:
        return RegistrationLifecycleService(
            registration_service=RegistrationService(session),
            payment_client=payment_client,
            email_service=email_service,
            price_table=price_table,
            admin_password=test_config["admin_password"],
            app_base_url=test_config["app_base_url"],
            event_name=test_config["event_name"],
        )

    return _make


@pytest.fixture
def lifecycle(make_lifecycle, _db_session):
    return make_lifecycle(_db_session)


@pytest.fixture
def paid_session(lifecycle, payment_client):
    """Create a checkout for Ana and mark it paid; returns the session id"""
    lifecycle.create_checkout(name="Ana", email="ana@example.com", tier="general")
    session_id = payment_client.last_session_id()
    payment_client.mark_paid(session_id)
    return session_id


@pytest.fixture
def client(engine, payment_client, email_service, price_table):
    """Test client wired to the test database and fake providers"""
    original_overrides = app.dependency_overrides.copy()

    def get_test_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_payment_client] = lambda: payment_client
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_price_table] = lambda: price_table

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
