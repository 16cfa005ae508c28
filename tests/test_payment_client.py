"""Tests for the Stripe payment client"""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from kermesse.backends.payment_client import PaymentClient
from kermesse.errors import PaymentGatewayError, ValidationError
from tests.config import test_config


@pytest.fixture
def stripe_client():
    return PaymentClient(test_config)


def _fake_session(**overrides):
    fields = {
        "id": "cs_test_123",
        "url": "https://checkout.stripe.com/c/pay/cs_test_123",
        "payment_status": "unpaid",
        "metadata": {"registration_id": "abc-123", "amount": 100700},
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _sign(payload: str, secret: str) -> str:
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


class TestCheckoutSessions:
    def test_create_sends_single_priced_line_item(self, stripe_client, monkeypatch):
        captured = {}

        def fake_create(**kwargs):
            captured.update(kwargs)
            return _fake_session()

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

        session = stripe_client.create_checkout_session(
            amount=100700,
            currency="mxn",
            product_name="Test Kermesse - General",
            description="General access, includes service fee",
            customer_email="ana@example.com",
            metadata={"registration_id": "abc-123"},
            success_url="http://localhost:3000/success.html?session_id={CHECKOUT_SESSION_ID}",
            cancel_url="http://localhost:3000/",
        )

        assert session.id == "cs_test_123"
        assert session.url.startswith("https://checkout.stripe.com/")
        assert captured["api_key"] == test_config["stripe_secret_key"]
        assert captured["mode"] == "payment"
        line_item = captured["line_items"][0]
        assert line_item["quantity"] == 1
        assert line_item["price_data"]["unit_amount"] == 100700
        assert line_item["price_data"]["currency"] == "mxn"
        assert captured["metadata"] == {"registration_id": "abc-123"}

    def test_create_wraps_stripe_errors(self, stripe_client, monkeypatch):
        def fake_create(**kwargs):
            raise stripe.APIConnectionError("network down")

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

        with pytest.raises(PaymentGatewayError) as exc_info:
            stripe_client.create_checkout_session(
                amount=1,
                currency="mxn",
                product_name="x",
                description="x",
                customer_email="ana@example.com",
                metadata={},
                success_url="http://localhost/",
                cancel_url="http://localhost/",
            )
        assert "network" not in exc_info.value.message

    def test_retrieve_normalizes_metadata(self, stripe_client, monkeypatch):
        monkeypatch.setattr(
            stripe.checkout.Session,
            "retrieve",
            lambda session_id, api_key=None: _fake_session(payment_status="paid"),
        )

        session = stripe_client.retrieve_checkout_session("cs_test_123")

        assert session.is_paid
        assert session.metadata == {"registration_id": "abc-123", "amount": "100700"}

    @pytest.mark.parametrize(
        "payment_status,expected",
        [("paid", True), ("no_payment_required", True), ("unpaid", False)],
    )
    def test_paid_statuses(self, stripe_client, monkeypatch, payment_status, expected):
        monkeypatch.setattr(
            stripe.checkout.Session,
            "retrieve",
            lambda session_id, api_key=None: _fake_session(
                payment_status=payment_status
            ),
        )

        assert stripe_client.retrieve_checkout_session("cs_test_123").is_paid is expected

    def test_retrieve_unknown_session_is_client_error(self, stripe_client, monkeypatch):
        def fake_retrieve(session_id, api_key=None):
            raise stripe.InvalidRequestError("No such checkout.session", "id")

        monkeypatch.setattr(stripe.checkout.Session, "retrieve", fake_retrieve)

        with pytest.raises(ValidationError):
            stripe_client.retrieve_checkout_session("cs_missing")


class TestWebhooks:
    def _payload(self, event_type="checkout.session.completed"):
        return json.dumps(
            {
                "id": "evt_test",
                "object": "event",
                "type": event_type,
                "data": {
                    "object": {"id": "cs_test_123", "object": "checkout.session"}
                },
            }
        )

    def test_valid_signature(self, stripe_client):
        payload = self._payload()
        signature = _sign(payload, test_config["stripe_webhook_secret"])

        event = stripe_client.parse_webhook(payload.encode("utf-8"), signature)

        assert event.type == "checkout.session.completed"
        assert event.session_id == "cs_test_123"

    def test_forged_signature(self, stripe_client):
        payload = self._payload()
        signature = _sign(payload, "whsec_someone_else")

        with pytest.raises(ValidationError):
            stripe_client.parse_webhook(payload.encode("utf-8"), signature)

    def test_missing_signature(self, stripe_client):
        with pytest.raises(ValidationError):
            stripe_client.parse_webhook(self._payload().encode("utf-8"), None)

    def test_webhooks_not_configured(self):
        client = PaymentClient({**test_config, "stripe_webhook_secret": None})

        with pytest.raises(PaymentGatewayError):
            client.parse_webhook(b"{}", "t=1,v1=x")
